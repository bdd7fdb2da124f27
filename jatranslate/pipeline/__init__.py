"""Chunked translation pipeline.

Splits input into ordered chunks, runs each chunk through Draft -> Critique
-> Refine under a concurrency cap with per-chunk retry, and joins the
results in input order. ``jatranslate.pipeline.runner.translate_text`` is
the entrypoint.
"""
