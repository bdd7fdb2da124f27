#!/usr/bin/env python3
"""Translate text into Japanese.

Usage:
    python scripts/translate_to_ja.py "Text to translate"
    cat article.md | python scripts/translate_to_ja.py --debug-dir outputs/work_translate

The translation is written to stdout so it can be piped into the next tool
(for example a TTS step). Progress goes to stderr.

Exit code behavior:
- Exits 1 for empty input, invalid options or unexpected failures.
- Otherwise exits 0; chunks that could not be translated appear as "[Error]".
"""

from __future__ import annotations

import sys
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[1]
root_str = str(ROOT_DIR)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from jatranslate.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
