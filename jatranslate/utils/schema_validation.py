"""
Schema Validation Utilities
===========================
JSON Schema checks for the records a translation run writes: the debug
metadata file and the degradation events embedded in it. Schemas ship with
the package under ``jatranslate/schemas``.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from jsonschema import Draft202012Validator, FormatChecker

SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"

RUN_META_SCHEMA = "run_meta.schema.json"
DEGRADATION_EVENT_SCHEMA = "degradation_event.schema.json"


@lru_cache(maxsize=None)
def _validator(schema_filename: str) -> Draft202012Validator:
    """Load and compile a packaged schema.

    Raises:
        FileNotFoundError: When the schema file is missing.
        ValueError: When the name escapes the schemas directory or the file
            does not hold a JSON object.
    """
    schema_path = (SCHEMAS_DIR / schema_filename).resolve()
    if not schema_path.is_relative_to(SCHEMAS_DIR):
        raise ValueError(f"Schema path escapes schemas directory: {schema_filename}")
    if not schema_path.is_file():
        raise FileNotFoundError(f"Schema not found: {schema_filename}")

    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load schema {schema_filename}: {e}") from e
    if not isinstance(schema, dict):
        raise ValueError(f"Schema {schema_filename} must be a JSON object")

    return Draft202012Validator(schema, format_checker=FormatChecker())


def validate_against_schema(payload: Any, schema_filename: str) -> None:
    """Raise ValueError naming the first failing location in ``payload``."""
    errors = sorted(_validator(schema_filename).iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if not errors:
        return

    first = errors[0]
    location = "/".join(str(p) for p in first.path)
    prefix = f"Validation failed at '{location}': " if location else "Validation failed: "
    raise ValueError(prefix + first.message)


def validate_degradation_event(event: Dict[str, Any]) -> None:
    validate_against_schema(event, DEGRADATION_EVENT_SCHEMA)


def validate_run_metadata(meta: Dict[str, Any]) -> None:
    validate_against_schema(meta, RUN_META_SCHEMA)


def is_valid_run_metadata(meta: Any) -> bool:
    try:
        validate_run_metadata(meta)
    except ValueError:
        return False
    return True
