"""
Utility Functions
=================
Path validation, filename sanitizing and JSON schema validation.
"""

from .validation import (
    validate_debug_root,
    sanitize_filename,
    is_safe_path,
)

from .schema_validation import (
    validate_against_schema,
    validate_degradation_event,
    validate_run_metadata,
    is_valid_run_metadata,
)

__all__ = [
    # Validation
    "validate_debug_root",
    "sanitize_filename",
    "is_safe_path",
    # Schema validation
    "validate_against_schema",
    "validate_degradation_event",
    "validate_run_metadata",
    "is_valid_run_metadata",
]
