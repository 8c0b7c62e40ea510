"""Screen configuration management: validated CRUD over storage."""

from .lib import (
    DuplicateScreenKeyError,
    InvalidScreenConfigError,
    ScreenManager,
    ScreenNotFoundError,
)

__all__ = [
    "ScreenManager",
    "ScreenNotFoundError",
    "DuplicateScreenKeyError",
    "InvalidScreenConfigError",
]
