"""Form state store: live field values and resolved widget state."""

from .lib import FormChange, FormSnapshot, FormState, Listener, UnknownFieldError

__all__ = [
    "FormState",
    "FormSnapshot",
    "FormChange",
    "Listener",
    "UnknownFieldError",
]
