"""Form value rules: requiredness, bounds, patterns and custom validators."""

from .lib import (
    CustomValidator,
    FieldError,
    check_values,
    check_widget,
    get_validator,
    is_blank,
    list_validators,
    register_validator,
    unregister_validator,
)

__all__ = [
    "FieldError",
    "CustomValidator",
    "register_validator",
    "unregister_validator",
    "get_validator",
    "list_validators",
    "is_blank",
    "check_widget",
    "check_values",
]
