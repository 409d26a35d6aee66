"""Validation utilities for CloudX."""

from cloudx.validators.path import (
    normalize_relative_path,
    resolve_within,
    validate_filename,
    validate_name,
)

__all__ = [
    "normalize_relative_path",
    "resolve_within",
    "validate_filename",
    "validate_name",
]
