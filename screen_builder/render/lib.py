"""Rendering dispatcher for screen widgets.

Maps each widget to a concrete control description. The mapping is pure:
the widget's type picks a control family through a renderer registered for
its category, the resolved state supplies the enabled and required flags,
and widgets that are not visible produce no control at all.

Controls are plain data. A UI layer (or the text preview in this module)
turns them into whatever it displays.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from screen_builder.dependency import UNSET, ResolvedState
from screen_builder.schema import (
    ScreenConfig,
    SelectOption,
    Widget,
    WidgetCategory,
    WidgetType,
    get_widget_category,
)
from screen_builder.state import FormState
from screen_builder.table import (
    can_add_row,
    can_delete_row,
    column_totals,
    ensure_min_rows,
    rows_from_value,
    rows_to_value,
)

logger = logging.getLogger(__name__)

OnChange = Callable[[Any], Any]


class RenderError(Exception):
    """Raised when no renderer is registered for a widget category."""

    def __init__(self, message: str, widget_id: str | None = None):
        self.widget_id = widget_id
        super().__init__(message)


# =============================================================================
# Controls
# =============================================================================


@dataclass
class Control:
    """A rendered widget.

    Attributes:
        widget_id: Source widget id.
        kind: Control family (text-input, select, data-grid, heading...).
        label: Display label.
        field: Bound form field ("" for static controls).
        value: Current value (None for static controls).
        enabled: Whether the control accepts input.
        required: Whether the control is marked required.
        static: True for display-only controls.
        options: Choices for choice controls.
        props: Type-specific attributes (placeholder, bounds, grid data...).
        error: Fetch error reported for the widget, if any.
        on_change: Callback receiving a new value.
    """

    widget_id: str
    kind: str
    label: str
    field: str = ""
    value: Any = None
    enabled: bool = True
    required: bool = False
    static: bool = False
    options: list[SelectOption] = dataclasses.field(default_factory=list)
    props: dict[str, Any] = dataclasses.field(default_factory=dict)
    error: str | None = None
    on_change: OnChange | None = dataclasses.field(
        default=None, repr=False, compare=False
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "widgetId": self.widget_id,
            "kind": self.kind,
            "label": self.label,
            "field": self.field,
            "value": self.value,
            "enabled": self.enabled,
            "required": self.required,
            "static": self.static,
            "options": [o.model_dump(mode="json", by_alias=True) for o in self.options],
            "props": self.props,
            "error": self.error,
        }


# =============================================================================
# Renderer Registry
# =============================================================================


class ControlRenderer(ABC):
    """Builds controls for one widget category.

    Subclasses set ``category`` and implement ``kind``; ``props`` is
    optional. Register with ``@register_renderer``.
    """

    category: WidgetCategory

    @abstractmethod
    def kind(self, widget: Widget) -> str:
        """Control family for this widget."""

    def props(self, widget: Widget, value: Any) -> dict[str, Any]:
        """Type-specific attributes for the control."""
        return _common_props(widget)

    def present_value(self, widget: Widget, value: Any) -> Any:
        """The value handed to the control."""
        return None if value is UNSET else value

    def build(
        self,
        widget: Widget,
        state: ResolvedState,
        value: Any,
        on_change: OnChange | None,
        options: Sequence[SelectOption] | None = None,
        error: str | None = None,
    ) -> Control:
        return Control(
            widget_id=widget.id,
            kind=self.kind(widget),
            label=widget.label,
            field=widget.field,
            value=self.present_value(widget, value),
            enabled=state.enabled,
            required=state.required,
            options=list(options if options is not None else widget.options),
            props=self.props(widget, value),
            error=error,
            on_change=on_change,
        )


_registry: dict[WidgetCategory, type[ControlRenderer]] = {}


def register_renderer(renderer_cls: type[ControlRenderer]) -> type[ControlRenderer]:
    """Register a renderer class for its category.

    Example:
        >>> @register_renderer
        ... class MyRenderer(ControlRenderer):
        ...     category = WidgetCategory.CHOICE
        ...     def kind(self, widget):
        ...         return "chips"
    """
    _registry[renderer_cls.category] = renderer_cls
    return renderer_cls


def get_renderer(category: WidgetCategory | str) -> ControlRenderer:
    """Get a renderer instance for a widget category.

    Raises:
        RenderError: If no renderer is registered for the category.
    """
    category = WidgetCategory(category)
    if category not in _registry:
        available = ", ".join(sorted(c.value for c in _registry))
        raise RenderError(
            f"No renderer for category '{category.value}'. Available: {available}"
        )
    return _registry[category]()


def list_renderers() -> list[str]:
    return sorted(c.value for c in _registry)


def _common_props(widget: Widget) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if widget.placeholder:
        props["placeholder"] = widget.placeholder
    if widget.helper_text:
        props["helperText"] = widget.helper_text
    if widget.width is not None:
        props["width"] = widget.width
    return props


# =============================================================================
# Built-in Renderers
# =============================================================================


_INPUT_KINDS = {
    WidgetType.TEXT: "text-input",
    WidgetType.NUMBER: "number-input",
    WidgetType.EMAIL: "email-input",
    WidgetType.PASSWORD: "password-input",
    WidgetType.TEXTAREA: "textarea",
}


@register_renderer
class InputRenderer(ControlRenderer):
    category = WidgetCategory.INPUT

    def kind(self, widget: Widget) -> str:
        return _INPUT_KINDS.get(widget.type, "text-input")

    def props(self, widget: Widget, value: Any) -> dict[str, Any]:
        props = _common_props(widget)
        if widget.type == WidgetType.NUMBER:
            if widget.minimum is not None:
                props["min"] = widget.minimum
            if widget.maximum is not None:
                props["max"] = widget.maximum
        return props


_CHOICE_KINDS = {
    WidgetType.SELECT: "select",
    WidgetType.MULTISELECT: "multi-select",
    WidgetType.RADIO: "radio-group",
    WidgetType.AUTOCOMPLETE: "autocomplete",
}


@register_renderer
class ChoiceRenderer(ControlRenderer):
    category = WidgetCategory.CHOICE

    def kind(self, widget: Widget) -> str:
        return _CHOICE_KINDS.get(widget.type, "select")

    def present_value(self, widget: Widget, value: Any) -> Any:
        if widget.type == WidgetType.MULTISELECT:
            if value is UNSET or value is None:
                return []
            return value if isinstance(value, list) else [value]
        return super().present_value(widget, value)


@register_renderer
class ToggleRenderer(ControlRenderer):
    category = WidgetCategory.TOGGLE

    def kind(self, widget: Widget) -> str:
        return "switch" if widget.type == WidgetType.SWITCH else "checkbox"

    def present_value(self, widget: Widget, value: Any) -> Any:
        return bool(value) if value is not UNSET else False


@register_renderer
class TemporalRenderer(ControlRenderer):
    category = WidgetCategory.TEMPORAL

    def kind(self, widget: Widget) -> str:
        return "datetime-picker" if widget.type == WidgetType.DATETIME else "date-picker"


@register_renderer
class RangeRenderer(ControlRenderer):
    category = WidgetCategory.RANGE

    def kind(self, widget: Widget) -> str:
        return "slider"

    def props(self, widget: Widget, value: Any) -> dict[str, Any]:
        props = _common_props(widget)
        props["min"] = widget.minimum if widget.minimum is not None else 0
        props["max"] = widget.maximum if widget.maximum is not None else 100
        extra = widget.model_extra or {}
        if "step" in extra:
            props["step"] = extra["step"]
        return props


@register_renderer
class CompositeRenderer(ControlRenderer):
    """Tables render as a data grid; custom widgets pass their metadata through."""

    category = WidgetCategory.COMPOSITE

    def kind(self, widget: Widget) -> str:
        return "data-grid" if widget.type == WidgetType.TABLE else "custom"

    def present_value(self, widget: Widget, value: Any) -> Any:
        if widget.type != WidgetType.TABLE:
            return super().present_value(widget, value)
        return rows_to_value(ensure_min_rows(widget, rows_from_value(value)))

    def props(self, widget: Widget, value: Any) -> dict[str, Any]:
        props = _common_props(widget)
        if widget.type != WidgetType.TABLE:
            props["metadata"] = dict(widget.metadata)
            return props

        rows = ensure_min_rows(widget, rows_from_value(value))
        props["columns"] = [
            c.model_dump(mode="json", by_alias=True, exclude_none=True)
            for c in widget.columns
        ]
        props["showRowNumbers"] = widget.show_row_numbers
        props["canAddRow"] = can_add_row(widget, rows)
        props["canDeleteRow"] = can_delete_row(widget, rows)
        if widget.show_totals:
            props["totals"] = column_totals(widget.columns, rows)
        return props


@register_renderer
class DisplayRenderer(ControlRenderer):
    """Static text and rules. Enabled and required flags do not apply."""

    category = WidgetCategory.DISPLAY

    def kind(self, widget: Widget) -> str:
        return str(WidgetType(widget.type).value)

    def build(
        self,
        widget: Widget,
        state: ResolvedState,
        value: Any,
        on_change: OnChange | None,
        options: Sequence[SelectOption] | None = None,
        error: str | None = None,
    ) -> Control:
        return Control(
            widget_id=widget.id,
            kind=self.kind(widget),
            label=widget.label,
            static=True,
            props=_common_props(widget),
        )


# =============================================================================
# Dispatch
# =============================================================================


def render(
    widget: Widget,
    state: ResolvedState,
    value: Any,
    on_change: OnChange | None = None,
    options: Sequence[SelectOption] | None = None,
    error: str | None = None,
) -> Control | None:
    """Render one widget, or return None when it is not visible.

    Args:
        widget: Widget to render.
        state: Its resolved state.
        value: Current field value (UNSET when none).
        on_change: Callback invoked with a new value.
        options: Options overriding the widget's declared ones.
        error: Fetch error to surface on the control.
    """
    if not state.visible:
        return None
    renderer = get_renderer(get_widget_category(widget.type))
    return renderer.build(widget, state, value, on_change, options, error)


@dataclass
class RenderedSection:
    id: str
    title: str
    columns: int
    controls: list[Control] = field(default_factory=list)


@dataclass
class RenderedAccordion:
    id: str
    title: str
    is_open: bool
    sections: list[RenderedSection] = field(default_factory=list)


@dataclass
class RenderedScreen:
    """Visible controls of a screen, grouped as in the configuration."""

    accordions: list[RenderedAccordion] = field(default_factory=list)

    @property
    def controls(self) -> list[Control]:
        return [
            control
            for accordion in self.accordions
            for section in accordion.sections
            for control in section.controls
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "accordions": [
                {
                    "id": a.id,
                    "title": a.title,
                    "isOpen": a.is_open,
                    "sections": [
                        {
                            "id": s.id,
                            "title": s.title,
                            "columns": s.columns,
                            "controls": [c.to_dict() for c in s.controls],
                        }
                        for s in a.sections
                    ],
                }
                for a in self.accordions
            ]
        }


def _setter(form_state: FormState, field_name: str) -> OnChange:
    def on_change(value: Any) -> Any:
        return form_state.set(field_name, value)

    return on_change


def render_screen(config: ScreenConfig, form_state: FormState) -> RenderedScreen:
    """Render every visible widget of a screen against a form state.

    Value controls get an ``on_change`` that writes their own field.
    """
    resolved = form_state.resolved
    screen = RenderedScreen()
    for accordion in config.accordions:
        rendered_accordion = RenderedAccordion(
            id=accordion.id, title=accordion.title, is_open=accordion.is_open
        )
        for section in accordion.sections:
            rendered_section = RenderedSection(
                id=section.id, title=section.title, columns=section.columns
            )
            for widget in section.widgets:
                holds_value = widget.holds_value and bool(widget.field)
                control = render(
                    widget,
                    resolved[widget.id],
                    form_state.get(widget.field) if holds_value else UNSET,
                    on_change=_setter(form_state, widget.field) if holds_value else None,
                    options=form_state.options_for(widget),
                    error=form_state.fetch_error(widget.id),
                )
                if control is not None:
                    rendered_section.controls.append(control)
            rendered_accordion.sections.append(rendered_section)
        screen.accordions.append(rendered_accordion)
    logger.debug("Rendered %d controls", len(screen.controls))
    return screen


# =============================================================================
# Text Preview
# =============================================================================


def _format_control(control: Control) -> str:
    label = control.label or control.widget_id
    attrs = [control.kind]
    if not control.static:
        if control.required:
            attrs.append("required")
        if not control.enabled:
            attrs.append("disabled")
    if control.error:
        attrs.append(f"error: {control.error}")
    text = f"{label} [{', '.join(attrs)}]"
    if not control.static and control.value not in (None, "", []):
        if control.kind == "data-grid":
            text += f" = {len(control.value)} rows"
        else:
            text += f" = {control.value!r}"
    return text


def format_screen_tree(screen: RenderedScreen) -> str:
    """Format a rendered screen as a human-readable tree.

    Example output:
        Applicant [accordion, open]
        ├── Contact [section, 2 columns]
        │   ├── Preferred contact [radio-group, required] = 'email'
        │   └── E-mail address [email-input, required]
        └── Notes [section, 1 column]
            └── Additional details [heading]
    """
    lines: list[str] = []
    for accordion in screen.accordions:
        state = "open" if accordion.is_open else "collapsed"
        lines.append(f"{accordion.title} [accordion, {state}]")
        for i, section in enumerate(accordion.sections):
            last_section = i == len(accordion.sections) - 1
            connector = "└── " if last_section else "├── "
            child_prefix = "    " if last_section else "│   "
            unit = "column" if section.columns == 1 else "columns"
            lines.append(
                f"{connector}{section.title} [section, {section.columns} {unit}]"
            )
            for j, control in enumerate(section.controls):
                last_control = j == len(section.controls) - 1
                control_connector = "└── " if last_control else "├── "
                lines.append(f"{child_prefix}{control_connector}{_format_control(control)}")
    return "\n".join(lines)


def preview_screen(
    config: ScreenConfig, values: dict[str, Any] | None = None
) -> str:
    """Render a screen for the given values and return its text tree."""
    form_state = FormState(config, initial_values=values)
    return format_screen_tree(render_screen(config, form_state))


__all__ = [
    "Control",
    "ControlRenderer",
    "RenderError",
    "RenderedScreen",
    "RenderedAccordion",
    "RenderedSection",
    "register_renderer",
    "get_renderer",
    "list_renderers",
    "render",
    "render_screen",
    "format_screen_tree",
    "preview_screen",
]
