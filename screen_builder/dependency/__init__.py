"""Dependency evaluation: resolves visible/enabled/required per widget.

Example usage:
    >>> from screen_builder.dependency import resolve
    >>> states = resolve(config, {"contactMethod": "email"})
    >>> states["w-email"].visible
    True
"""

from .lib import (
    UNSET,
    DependencyIndex,
    ResolvedState,
    apply_action,
    declared_state,
    evaluate_condition,
    is_empty,
    resolve,
    resolve_widget,
    stringify,
)

__all__ = [
    "UNSET",
    "ResolvedState",
    "DependencyIndex",
    "declared_state",
    "stringify",
    "is_empty",
    "evaluate_condition",
    "apply_action",
    "resolve_widget",
    "resolve",
]
