"""Dependency evaluation for screen widgets.

Resolves, for every widget, whether it is visible, enabled and required
given the current form values. Resolution is single level: a widget's
state depends only on its own declared dependency and its parent field's
raw value, never on the parent's resolved state. There is no propagation
across chained dependencies, so evaluation is O(widgets) with no cycles.

Resolved state is always derived. Nothing here stores or mutates flags,
so calling ``resolve`` twice with the same inputs gives equal results.

Comparison follows loose string semantics: ``equals`` compares the string
forms of both sides (``3`` equals ``"3"``, an unset parent is
``"undefined"``), while ``contains`` against a list target is an exact
membership test.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any

from screen_builder.schema import (
    DependencyAction,
    DependencyCondition,
    MultiValue,
    ScreenConfig,
    SingleValue,
    ValidationType,
    Widget,
    WidgetDependency,
    iter_widgets,
)

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for a field that has no value in form state."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# =============================================================================
# Resolved State
# =============================================================================


@dataclass(frozen=True)
class ResolvedState:
    """Runtime state of a widget for a given set of form values.

    Attributes:
        visible: Whether the widget is rendered at all.
        enabled: Whether the widget accepts input.
        required: Whether a value must be supplied.
    """

    visible: bool
    enabled: bool
    required: bool

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


def declared_state(widget: Widget) -> ResolvedState:
    """The state a widget has before any dependency is applied.

    A ``required`` validation rule counts the same as the required flag.
    """
    return ResolvedState(
        visible=not widget.hidden,
        enabled=not widget.disabled,
        required=widget.required
        or any(rule.type == ValidationType.REQUIRED for rule in widget.validations),
    )


# =============================================================================
# Value Semantics
# =============================================================================


def _format_number(value: float) -> str:
    """Format a float the way JavaScript's ``String(number)`` does.

    Uses the shortest round-trip digits. Plain notation covers magnitudes
    from 1e-6 up to 1e21, exponent notation everything else.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    mantissa, _, exponent = repr(abs(value)).partition("e")
    whole, _, fraction = mantissa.partition(".")
    raw = whole + fraction
    digits = raw.lstrip("0")
    # Decimal point position relative to the first significant digit
    point = len(whole) + int(exponent or 0) - (len(raw) - len(digits))
    digits = digits.rstrip("0")
    count = len(digits)

    if count <= point <= 21:
        text = digits + "0" * (point - count)
    elif 0 < point <= 21:
        text = f"{digits[:point]}.{digits[point:]}"
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        power = point - 1
        head = digits if count == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{head}e{'+' if power >= 0 else '-'}{abs(power)}"
    return sign + text


def stringify(value: Any) -> str:
    """Loose string form of a form value, used for equality checks.

    Unset is ``"undefined"``, None is ``"null"``, booleans are lower-case,
    integral floats drop their fraction and sequences are comma-joined
    with unset/None elements as empty strings.
    """
    if value is UNSET:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(
            "" if item is None or item is UNSET else stringify(item) for item in value
        )
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def is_empty(value: Any) -> bool:
    """Whether a parent value counts as empty.

    Empty means unset, None, False, zero, NaN, the empty string or an
    empty list. Mappings are never empty.
    """
    if value is UNSET or value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


# =============================================================================
# Condition Evaluation
# =============================================================================


def _contains(dependency: WidgetDependency, parent_value: Any) -> bool | None:
    """Membership/substring test, or None when neither branch applies."""
    target = dependency.target
    if isinstance(target, MultiValue):
        # Exact match only: 3 is not a member of ["3"]
        return isinstance(parent_value, str) and parent_value in target.values
    if isinstance(target, SingleValue) and isinstance(parent_value, str):
        return target.value in parent_value
    return None


def evaluate_condition(dependency: WidgetDependency, parent_value: Any) -> bool:
    """Evaluate a dependency's condition against the parent field's value.

    Args:
        dependency: The dependency rule.
        parent_value: The parent field's current value, or UNSET.

    Returns:
        bool: Whether the condition is met. Unrecognized conditions are
        never met.
    """
    condition = dependency.condition

    if condition in (DependencyCondition.EQUALS, DependencyCondition.NOT_EQUALS):
        target = dependency.target
        if isinstance(target, MultiValue):
            expected = stringify(list(target.values))
        elif isinstance(target, SingleValue):
            expected = target.value
        else:
            expected = stringify(UNSET)
        matched = stringify(parent_value) == expected
        return matched if condition == DependencyCondition.EQUALS else not matched

    if condition == DependencyCondition.CONTAINS:
        return _contains(dependency, parent_value) is True

    if condition == DependencyCondition.NOT_CONTAINS:
        return _contains(dependency, parent_value) is False

    if condition == DependencyCondition.IS_EMPTY:
        return is_empty(parent_value)

    if condition == DependencyCondition.IS_NOT_EMPTY:
        return not is_empty(parent_value)

    logger.debug("Unrecognized dependency condition %r", condition)
    return False


_ACTION_EFFECTS: dict[str, tuple[str, bool]] = {
    DependencyAction.SHOW: ("visible", True),
    DependencyAction.HIDE: ("visible", False),
    DependencyAction.ENABLE: ("enabled", True),
    DependencyAction.DISABLE: ("enabled", False),
    DependencyAction.REQUIRE: ("required", True),
    DependencyAction.OPTIONAL: ("required", False),
}


def apply_action(
    state: ResolvedState, action: DependencyAction | str, condition_met: bool
) -> ResolvedState:
    """Set exactly one attribute of ``state`` from the condition outcome."""
    effect = _ACTION_EFFECTS.get(action)
    if effect is None:
        return state
    attribute, when_met = effect
    return replace(state, **{attribute: condition_met if when_met else not condition_met})


# =============================================================================
# Resolution
# =============================================================================


def resolve_widget(widget: Widget, form_values: Mapping[str, Any]) -> ResolvedState:
    """Resolve one widget's runtime state.

    Widgets without a dependency keep their declared state. A dependency on
    the widget's own field is ignored. A parent field missing from
    ``form_values`` is treated as unset.
    """
    state = declared_state(widget)
    dependency = widget.dependency
    if dependency is None:
        return state

    parent_field = dependency.parent_field_id
    if widget.field and parent_field == widget.field:
        logger.debug("Ignoring self-referencing dependency on widget %s", widget.id)
        return state

    parent_value = form_values.get(parent_field, UNSET)
    condition_met = evaluate_condition(dependency, parent_value)
    return apply_action(state, dependency.action, condition_met)


def resolve(
    widgets: Iterable[Widget] | ScreenConfig, form_values: Mapping[str, Any]
) -> dict[str, ResolvedState]:
    """Resolve every widget's runtime state.

    Args:
        widgets: Widgets to resolve, or a whole ScreenConfig.
        form_values: Current field -> value mapping.

    Returns:
        dict mapping widget id to ResolvedState.

    Example:
        >>> states = resolve(config, {"contactMethod": "email"})
        >>> states["w-email"].visible
        True
    """
    if isinstance(widgets, ScreenConfig):
        widgets = iter_widgets(widgets)
    return {widget.id: resolve_widget(widget, form_values) for widget in widgets}


class DependencyIndex:
    """Widgets grouped by the parent field their dependency reads.

    Lets a caller re-resolve only the widgets affected by one field change.
    The result is always equal to a full ``resolve`` over the same values.
    """

    def __init__(self, widgets: Iterable[Widget]):
        self._dependents: dict[str, list[Widget]] = {}
        for widget in widgets:
            if widget.dependency is not None:
                self._dependents.setdefault(
                    widget.dependency.parent_field_id, []
                ).append(widget)

    def dependents(self, field_name: str) -> list[Widget]:
        """Widgets whose dependency reads ``field_name``."""
        return list(self._dependents.get(field_name, ()))

    @property
    def parent_fields(self) -> set[str]:
        return set(self._dependents)

    def update(
        self,
        previous: Mapping[str, ResolvedState],
        form_values: Mapping[str, Any],
        changed_field: str,
    ) -> dict[str, ResolvedState]:
        """Return a new resolved map with the changed field's dependents refreshed."""
        resolved = dict(previous)
        for widget in self._dependents.get(changed_field, ()):
            resolved[widget.id] = resolve_widget(widget, form_values)
        return resolved


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
