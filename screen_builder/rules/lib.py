"""Value checking for filled-in forms.

Applies each visible widget's resolved requiredness and its declared
validation rules to the current form values. Hidden widgets are skipped
entirely, so a hidden required field never blocks submission.

Custom rules (``type: custom``) name a validator registered with
``register_validator``.
"""

import logging
import math
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import asdict, dataclass
from typing import Any

from screen_builder.dependency import UNSET, resolve
from screen_builder.schema import (
    ScreenConfig,
    Validation,
    ValidationType,
    Widget,
    WidgetCategory,
    WidgetType,
    get_widget_category,
    iter_widgets,
)
from screen_builder.table import row_errors, rows_from_value

logger = logging.getLogger(__name__)


@dataclass
class FieldError:
    """A rule violation on one field.

    Attributes:
        widget_id: ID of the widget holding the field.
        field: The field name.
        message: Human-readable description.
        rule: The rule type that failed (required, min, pattern, ...).
    """

    widget_id: str
    field: str
    message: str
    rule: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


# =============================================================================
# Custom Validator Registry
# =============================================================================

CustomValidator = Callable[[Any, Widget], bool]

_validators: dict[str, CustomValidator] = {}


def register_validator(name: str) -> Callable[[CustomValidator], CustomValidator]:
    """Register a custom validator under ``name``.

    The validator receives the field value and the widget and returns True
    when the value is acceptable.

    Example:
        >>> @register_validator("postcode")
        ... def postcode(value, widget):
        ...     return bool(re.fullmatch(r"\\d{4}", str(value)))
    """

    def decorator(func: CustomValidator) -> CustomValidator:
        _validators[name] = func
        return func

    return decorator


def unregister_validator(name: str) -> None:
    _validators.pop(name, None)


def get_validator(name: str) -> CustomValidator:
    """Get a registered custom validator.

    Raises:
        KeyError: If no validator has that name.
    """
    if name not in _validators:
        available = ", ".join(sorted(_validators)) or "none"
        raise KeyError(f"Unknown validator '{name}'. Available: {available}")
    return _validators[name]


def list_validators() -> list[str]:
    return sorted(_validators)


# =============================================================================
# Rule Checks
# =============================================================================


def is_blank(widget: Widget, value: Any) -> bool:
    """Whether a value fails a required check for this widget."""
    if value is UNSET or value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    if value is False:
        return get_widget_category(widget.type) == WidgetCategory.TOGGLE
    return False


def _label(widget: Widget) -> str:
    return widget.label or widget.field


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        result = float(str(value).strip())
    except ValueError:
        return None
    return None if math.isnan(result) else result


def _check_rule(widget: Widget, rule: Validation, value: Any) -> str | None:
    """Return an error message if ``value`` breaks ``rule``."""
    label = _label(widget)
    kind = rule.type

    if kind in (ValidationType.MIN, ValidationType.MAX):
        number = _as_number(value)
        bound = _as_number(rule.value)
        if bound is None:
            logger.warning("Ignoring %s rule without a numeric bound on %s", kind, widget.id)
            return None
        if number is None:
            return rule.message or f"{label} must be a number"
        if kind == ValidationType.MIN and number < bound:
            return rule.message or f"{label} must be at least {bound:g}"
        if kind == ValidationType.MAX and number > bound:
            return rule.message or f"{label} must be at most {bound:g}"
        return None

    if kind in (ValidationType.MIN_LENGTH, ValidationType.MAX_LENGTH):
        length = len(value) if isinstance(value, (str, list, tuple)) else len(str(value))
        limit = _as_number(rule.value)
        if limit is None:
            logger.warning("Ignoring %s rule without a numeric limit on %s", kind, widget.id)
            return None
        if kind == ValidationType.MIN_LENGTH and length < limit:
            return rule.message or f"{label} must be at least {limit:g} characters"
        if kind == ValidationType.MAX_LENGTH and length > limit:
            return rule.message or f"{label} must be at most {limit:g} characters"
        return None

    if kind == ValidationType.PATTERN:
        try:
            matched = re.search(str(rule.value), str(value)) is not None
        except re.error:
            logger.warning("Invalid pattern %r on widget %s", rule.value, widget.id)
            return None
        return None if matched else rule.message or f"{label} has an invalid format"

    if kind == ValidationType.CUSTOM:
        name = rule.validator or (rule.value if isinstance(rule.value, str) else None)
        if not name or name not in _validators:
            logger.warning("Unknown custom validator %r on widget %s", name, widget.id)
            return None
        if get_validator(name)(value, widget):
            return None
        return rule.message or f"{label} is invalid"

    return None


def check_widget(
    widget: Widget, value: Any, required: bool
) -> list[FieldError]:
    """Check one visible widget's value against its rules."""
    errors: list[FieldError] = []

    def error(message: str, rule: str) -> None:
        errors.append(
            FieldError(widget_id=widget.id, field=widget.field, message=message, rule=rule)
        )

    required_rule = next(
        (r for r in widget.validations if r.type == ValidationType.REQUIRED), None
    )
    if is_blank(widget, value):
        if required:
            message = required_rule.message if required_rule else ""
            error(message or f"{_label(widget)} is required", ValidationType.REQUIRED.value)
        return errors

    for rule in widget.validations:
        message = _check_rule(widget, rule, value)
        if message:
            error(message, str(rule.type))

    if widget.type in (WidgetType.NUMBER, WidgetType.SLIDER):
        number = _as_number(value)
        if number is not None:
            if widget.minimum is not None and number < widget.minimum:
                error(f"{_label(widget)} must be at least {widget.minimum:g}", "min")
            if widget.maximum is not None and number > widget.maximum:
                error(f"{_label(widget)} must be at most {widget.maximum:g}", "max")

    if widget.type == WidgetType.TABLE:
        for message in row_errors(widget, rows_from_value(value)):
            error(message, "table")

    return errors


def check_values(
    widgets: ScreenConfig | Iterable[Widget], values: Mapping[str, Any]
) -> list[FieldError]:
    """Check every visible value-holding widget against the form values.

    Args:
        widgets: A ScreenConfig or its widgets.
        values: Current field -> value mapping.

    Returns:
        list[FieldError]: Violations in document order (empty if valid).
    """
    if isinstance(widgets, ScreenConfig):
        widgets = iter_widgets(widgets)
    widgets = list(widgets)
    resolved = resolve(widgets, values)

    errors: list[FieldError] = []
    for widget in widgets:
        if not widget.holds_value or not widget.field:
            continue
        state = resolved[widget.id]
        if not state.visible:
            continue
        errors.extend(
            check_widget(widget, values.get(widget.field, UNSET), state.required)
        )
    return errors


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
