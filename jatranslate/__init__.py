"""jatranslate: chunked, multi-stage Japanese translation with Claude."""

__version__ = "0.1.0"
