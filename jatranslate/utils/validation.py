"""
Validation Utilities
====================
Path checks for debug output: the debug root given on the command line and
the per-run folder name derived from ``--run-name``.
"""

import os
import re
from pathlib import Path
from typing import Optional, Union

from loguru import logger


# System locations debug output must never be written into
FORBIDDEN_PREFIXES = ("/etc", "/proc", "/sys", "/dev")

_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def is_safe_path(path: Union[str, Path], base_dir: Optional[Union[str, Path]] = None) -> bool:
    """
    Check a path for traversal segments and system locations.

    Args:
        path: Path to check
        base_dir: Optional directory the resolved path must stay under

    Returns:
        True if the path may be written to
    """
    raw = Path(path)
    if ".." in raw.parts:
        logger.warning(f"Refusing path with '..' segment: {path}")
        return False

    try:
        resolved = raw.resolve()
    except (OSError, RuntimeError) as e:
        logger.warning(f"Cannot resolve path {path}: {e}")
        return False

    if any(resolved == Path(prefix) or str(resolved).startswith(prefix + os.sep) for prefix in FORBIDDEN_PREFIXES):
        logger.warning(f"Refusing system path: {path}")
        return False

    if base_dir is not None and not resolved.is_relative_to(Path(base_dir).resolve()):
        logger.warning(f"Path {resolved} is outside {base_dir}")
        return False

    return True


def validate_debug_root(path: Union[str, Path]) -> Path:
    """
    Validate the directory that receives per-run debug folders.

    The directory does not have to exist yet; it is created on first use.

    Raises:
        ValueError: Empty, unsafe, or an existing non-directory
    """
    if not str(path).strip():
        raise ValueError("Debug directory cannot be empty")

    root = Path(path).expanduser()
    if not is_safe_path(root):
        raise ValueError(f"Unsafe debug directory: {path}")
    if root.exists() and not root.is_dir():
        raise ValueError(f"Debug directory is not a directory: {path}")
    return root


def sanitize_filename(filename: str, max_length: int = 255) -> str:
    """
    Reduce ``filename`` to a single safe path component.

    Directory parts (either slash style) and reserved characters are dropped,
    whitespace becomes underscores, and long names are cut while keeping the
    extension. Returns "unnamed" when nothing usable is left.
    """
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = _UNSAFE_NAME_CHARS.sub("", name)
    name = re.sub(r"\s+", "_", name).strip(". ")

    if len(name) > max_length:
        stem, ext = os.path.splitext(name)
        name = stem[: max_length - len(ext)] + ext

    return name or "unnamed"
