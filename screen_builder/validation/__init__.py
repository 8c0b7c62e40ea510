"""Screen configuration validation utilities."""

from .lib import (
    ValidationIssue,
    ValidationResult,
    is_valid,
    lint_screen_config,
    validate_screen_config,
)

__all__ = [
    "ValidationResult",
    "ValidationIssue",
    "validate_screen_config",
    "is_valid",
    "lint_screen_config",
]
