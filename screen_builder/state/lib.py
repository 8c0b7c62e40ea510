"""Form state store for a single render session.

FormState owns the live ``field -> value`` mapping of one screen while it is
being filled in or previewed. It is never persisted with the screen
configuration.

Every ``set`` re-resolves the dependency state of the widgets reading the
changed field and then notifies subscribers. Writes are serialized: a
``set`` issued by a listener while another change is being dispatched is
queued and applied after it, so listeners never observe a partial update.

Example:
    >>> state = FormState(config)
    >>> unsubscribe = state.subscribe(lambda change: print(change.field))
    >>> snapshot = state.set("contactMethod", "email")
    contactMethod
    >>> snapshot.resolved["w-email"].visible
    True
"""

import copy
import logging
from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from screen_builder.dependency import (
    UNSET,
    DependencyIndex,
    ResolvedState,
    resolve,
)
from screen_builder.schema import ScreenConfig, SelectOption, Widget, iter_widgets

logger = logging.getLogger(__name__)


class UnknownFieldError(KeyError):
    """Raised when writing a field no value-holding widget declares."""

    def __init__(self, field_name: str):
        self.field = field_name
        super().__init__(f"Unknown field '{field_name}'")


@dataclass(frozen=True)
class FormSnapshot:
    """Read-only view of form values and resolved widget state."""

    values: Mapping[str, Any]
    resolved: Mapping[str, ResolvedState]


@dataclass(frozen=True)
class FormChange:
    """Notification delivered to subscribers after a value change.

    Attributes:
        field: The field that changed.
        value: The new value.
        previous: The value before the change (UNSET if it had none).
        snapshot: State after the change.
    """

    field: str
    value: Any
    previous: Any
    snapshot: FormSnapshot


Listener = Callable[[FormChange], None]


class FormState:
    """Live values, resolved state and fetch status of one screen session.

    Args:
        widgets: A ScreenConfig or the widgets to track.
        initial_values: External values (e.g. an existing submission)
            overlaid on the widgets' default values.
    """

    def __init__(
        self,
        widgets: ScreenConfig | Iterable[Widget],
        initial_values: Mapping[str, Any] | None = None,
    ):
        if isinstance(widgets, ScreenConfig):
            widgets = iter_widgets(widgets)
        self._widgets: list[Widget] = list(widgets)
        self._by_field: dict[str, Widget] = {
            w.field: w for w in self._widgets if w.holds_value and w.field
        }

        self._values = self._seed(initial_values)

        self._index = DependencyIndex(self._widgets)
        self._resolved = resolve(self._widgets, self._values)

        self._listeners: list[Listener] = []
        self._pending: deque[tuple[str, Any]] = deque()
        self._dispatching = False

        self._option_overrides: dict[str, list[SelectOption]] = {}
        self._fetch_errors: dict[str, str] = {}

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def _seed(self, overrides: Mapping[str, Any] | None) -> dict[str, Any]:
        """Default values overlaid by external values for declared fields."""
        values: dict[str, Any] = {}
        for field_name, widget in self._by_field.items():
            if widget.default_value is not None:
                values[field_name] = copy.deepcopy(widget.default_value)
        for field_name, value in (overrides or {}).items():
            if field_name in self._by_field:
                values[field_name] = value
            else:
                logger.debug("Ignoring value for undeclared field %s", field_name)
        return values

    @property
    def widgets(self) -> list[Widget]:
        return list(self._widgets)

    @property
    def fields(self) -> list[str]:
        """Fields declared by value-holding widgets, in document order."""
        return list(self._by_field)

    @property
    def values(self) -> dict[str, Any]:
        """A copy of the current values."""
        return dict(self._values)

    def get(self, field_name: str, default: Any = UNSET) -> Any:
        """Current value of a field, or ``default`` when unset."""
        return self._values.get(field_name, default)

    def widget_for(self, field_name: str) -> Widget | None:
        return self._by_field.get(field_name)

    def snapshot(self) -> FormSnapshot:
        return FormSnapshot(
            values=MappingProxyType(dict(self._values)),
            resolved=MappingProxyType(dict(self._resolved)),
        )

    def set(self, field_name: str, value: Any) -> FormSnapshot:
        """Write one field and return the resulting snapshot.

        Raises:
            UnknownFieldError: If no value-holding widget declares the field.
        """
        if field_name not in self._by_field:
            raise UnknownFieldError(field_name)

        self._pending.append((field_name, value))
        if self._dispatching:
            return self.snapshot()

        self._dispatching = True
        try:
            while self._pending:
                self._apply(*self._pending.popleft())
        finally:
            self._dispatching = False
            self._pending.clear()
        return self.snapshot()

    def _apply(self, field_name: str, value: Any) -> None:
        previous = self._values.get(field_name, UNSET)
        self._values[field_name] = value
        self._resolved = self._index.update(self._resolved, self._values, field_name)
        logger.debug("Set %s (previous=%r)", field_name, previous)

        change = FormChange(
            field=field_name,
            value=value,
            previous=previous,
            snapshot=self.snapshot(),
        )
        for listener in list(self._listeners):
            listener(change)

    def reset(self, values: Mapping[str, Any] | None = None) -> FormSnapshot:
        """Replace all values at once without notifying subscribers."""
        self._values = self._seed(values)
        self._resolved = resolve(self._widgets, self._values)
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Resolved State
    # -------------------------------------------------------------------------

    @property
    def resolved(self) -> dict[str, ResolvedState]:
        return dict(self._resolved)

    def state_of(self, widget_id: str) -> ResolvedState:
        """Resolved state of one widget.

        Raises:
            KeyError: If the widget is not part of this form.
        """
        return self._resolved[widget_id]

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # API Binding Results
    # -------------------------------------------------------------------------

    def set_options(self, widget_id: str, options: Iterable[SelectOption]) -> None:
        """Replace a widget's options with fetched ones."""
        self._option_overrides[widget_id] = list(options)

    def options_for(self, widget: Widget) -> list[SelectOption]:
        """Fetched options when present, else the widget's declared options."""
        return list(self._option_overrides.get(widget.id, widget.options))

    def set_fetch_error(self, widget_id: str, message: str) -> None:
        """Flag a failed data fetch. Invisible to dependency resolution."""
        logger.warning("Fetch failed for widget %s: %s", widget_id, message)
        self._fetch_errors[widget_id] = message

    def clear_fetch_error(self, widget_id: str) -> None:
        self._fetch_errors.pop(widget_id, None)

    def fetch_error(self, widget_id: str) -> str | None:
        return self._fetch_errors.get(widget_id)

    @property
    def fetch_errors(self) -> dict[str, str]:
        return dict(self._fetch_errors)


__all__ = [
    "FormState",
    "FormSnapshot",
    "FormChange",
    "Listener",
    "UnknownFieldError",
]
