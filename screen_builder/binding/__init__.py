"""API binding: fetch options, values and table rows over HTTP.

Example usage:
    >>> from screen_builder.binding import BindingClient, bind_form
    >>> with BindingClient(timeout=5) as client:
    ...     stop = bind_form(form_state, client)
"""

from .lib import (
    BindingClient,
    BindingError,
    ExtractResult,
    OptionsResult,
    RowsResult,
    ValueResult,
    apply_binding,
    bind_form,
    bound_widgets,
    extract,
    get_value_by_path,
    substitute_in_object,
    substitute_template,
)

__all__ = [
    "BindingClient",
    "BindingError",
    "OptionsResult",
    "ValueResult",
    "RowsResult",
    "ExtractResult",
    "substitute_template",
    "substitute_in_object",
    "get_value_by_path",
    "extract",
    "apply_binding",
    "bound_widgets",
    "bind_form",
]
