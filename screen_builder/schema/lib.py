"""Authoritative Schema Module for screen configurations.

This module is the single source of truth for the shape of a screen:
accordions contain sections, sections contain widgets, and widgets carry
validation rules and an optional dependency on another widget's value.

It provides:
- Typed pydantic models mirroring the persisted JSON document
- Rich widget-type metadata (category, value semantics)
- Immutable editing helpers that return a new ScreenConfig
- JSON (de)serialization and JSON Schema export

Models are frozen. Python attributes are snake_case; the JSON form uses the
camelCase keys of the stored documents (``parentFieldId``, ``isOpen``...).
"""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# =============================================================================
# Enumerations
# =============================================================================


class WidgetType(str, Enum):
    """Every widget type a screen may declare."""

    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    PASSWORD = "password"
    SELECT = "select"
    MULTISELECT = "multiselect"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"
    DATETIME = "datetime"
    TEXTAREA = "textarea"
    TABLE = "table"
    CUSTOM = "custom"
    SWITCH = "switch"
    SLIDER = "slider"
    AUTOCOMPLETE = "autocomplete"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    DIVIDER = "divider"


class WidgetCategory(str, Enum):
    """High-level widget groupings used to pick a control family."""

    INPUT = "input"
    CHOICE = "choice"
    TOGGLE = "toggle"
    TEMPORAL = "temporal"
    RANGE = "range"
    COMPOSITE = "composite"
    DISPLAY = "display"


class DependencyCondition(str, Enum):
    """Comparison applied to the parent field's current value."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


# Conditions that compare against a target value
VALUE_CONDITIONS = frozenset(
    {
        DependencyCondition.EQUALS,
        DependencyCondition.NOT_EQUALS,
        DependencyCondition.CONTAINS,
        DependencyCondition.NOT_CONTAINS,
    }
)


class DependencyAction(str, Enum):
    """Effect applied to the dependent widget when the condition is met."""

    SHOW = "show"
    HIDE = "hide"
    ENABLE = "enable"
    DISABLE = "disable"
    REQUIRE = "require"
    OPTIONAL = "optional"


class ValidationType(str, Enum):
    """Kinds of per-widget value validation rules."""

    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CUSTOM = "custom"


class ColumnType(str, Enum):
    """Cell types for table widget columns."""

    TEXT = "text"
    STRING = "string"
    NUMBER = "number"
    SELECT = "select"
    CHECKBOX = "checkbox"
    SWITCH = "switch"
    BOOLEAN = "boolean"
    DATE = "date"
    FORMULA = "formula"
    ACTIONS = "actions"


class HttpMethod(str, Enum):
    """HTTP methods allowed for widget API bindings."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


# =============================================================================
# Widget Type Metadata
# =============================================================================


@dataclass(frozen=True)
class WidgetMeta:
    """Metadata describing how a widget type behaves.

    Attributes:
        type: The widget type.
        category: Control grouping used by the rendering dispatcher.
        description: Human-readable summary.
        holds_value: Whether the widget stores a value in form state.
        choice_based: Whether the widget picks from ``options``.
        multi_valued: Whether the stored value is a list.
    """

    type: WidgetType
    category: WidgetCategory
    description: str
    holds_value: bool = True
    choice_based: bool = False
    multi_valued: bool = False


WIDGET_REGISTRY: dict[WidgetType, WidgetMeta] = {
    WidgetType.TEXT: WidgetMeta(
        WidgetType.TEXT, WidgetCategory.INPUT, "Single-line free text"
    ),
    WidgetType.NUMBER: WidgetMeta(
        WidgetType.NUMBER, WidgetCategory.INPUT, "Numeric input"
    ),
    WidgetType.EMAIL: WidgetMeta(
        WidgetType.EMAIL, WidgetCategory.INPUT, "E-mail address input"
    ),
    WidgetType.PASSWORD: WidgetMeta(
        WidgetType.PASSWORD, WidgetCategory.INPUT, "Masked text input"
    ),
    WidgetType.TEXTAREA: WidgetMeta(
        WidgetType.TEXTAREA, WidgetCategory.INPUT, "Multi-line free text"
    ),
    WidgetType.SELECT: WidgetMeta(
        WidgetType.SELECT,
        WidgetCategory.CHOICE,
        "Drop-down with a single selection",
        choice_based=True,
    ),
    WidgetType.MULTISELECT: WidgetMeta(
        WidgetType.MULTISELECT,
        WidgetCategory.CHOICE,
        "Drop-down with multiple selections",
        choice_based=True,
        multi_valued=True,
    ),
    WidgetType.RADIO: WidgetMeta(
        WidgetType.RADIO,
        WidgetCategory.CHOICE,
        "Radio group with a single selection",
        choice_based=True,
    ),
    WidgetType.AUTOCOMPLETE: WidgetMeta(
        WidgetType.AUTOCOMPLETE,
        WidgetCategory.CHOICE,
        "Searchable option picker",
        choice_based=True,
    ),
    WidgetType.CHECKBOX: WidgetMeta(
        WidgetType.CHECKBOX, WidgetCategory.TOGGLE, "Boolean checkbox"
    ),
    WidgetType.SWITCH: WidgetMeta(
        WidgetType.SWITCH, WidgetCategory.TOGGLE, "Boolean on/off switch"
    ),
    WidgetType.DATE: WidgetMeta(
        WidgetType.DATE, WidgetCategory.TEMPORAL, "Calendar date picker"
    ),
    WidgetType.DATETIME: WidgetMeta(
        WidgetType.DATETIME, WidgetCategory.TEMPORAL, "Date and time picker"
    ),
    WidgetType.SLIDER: WidgetMeta(
        WidgetType.SLIDER, WidgetCategory.RANGE, "Numeric slider between bounds"
    ),
    WidgetType.TABLE: WidgetMeta(
        WidgetType.TABLE,
        WidgetCategory.COMPOSITE,
        "Editable grid whose value is a list of rows",
        multi_valued=True,
    ),
    WidgetType.CUSTOM: WidgetMeta(
        WidgetType.CUSTOM, WidgetCategory.COMPOSITE, "Application-defined control"
    ),
    WidgetType.HEADING: WidgetMeta(
        WidgetType.HEADING,
        WidgetCategory.DISPLAY,
        "Static heading text",
        holds_value=False,
    ),
    WidgetType.PARAGRAPH: WidgetMeta(
        WidgetType.PARAGRAPH,
        WidgetCategory.DISPLAY,
        "Static paragraph text",
        holds_value=False,
    ),
    WidgetType.DIVIDER: WidgetMeta(
        WidgetType.DIVIDER,
        WidgetCategory.DISPLAY,
        "Horizontal rule",
        holds_value=False,
    ),
}


def get_widget_meta(widget_type: WidgetType | str) -> WidgetMeta:
    """Get metadata for a widget type.

    Raises:
        KeyError: If the type is not registered.
    """
    return WIDGET_REGISTRY[WidgetType(widget_type)]


def get_widget_category(widget_type: WidgetType | str) -> WidgetCategory:
    """Get the category for a widget type."""
    return get_widget_meta(widget_type).category


# =============================================================================
# Dependency Targets
# =============================================================================


@dataclass(frozen=True)
class SingleValue:
    """A dependency compared against one string."""

    value: str


@dataclass(frozen=True)
class MultiValue:
    """A dependency compared against a list of strings."""

    values: tuple[str, ...]


DependencyTarget = SingleValue | MultiValue


# =============================================================================
# Models
# =============================================================================


class _SchemaModel(BaseModel):
    """Base for all schema models: frozen, camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
        validate_default=True,
    )


class SelectOption(_SchemaModel):
    """A choice offered by select, radio, multiselect and autocomplete."""

    value: str | int | float
    label: str = ""
    disabled: bool = False


class Validation(_SchemaModel):
    """A value rule attached to a widget."""

    type: ValidationType
    value: Any = None
    message: str = ""
    validator: str | None = Field(
        default=None,
        description="Registered custom validator name (type=custom only)",
    )


class WidgetDependency(_SchemaModel):
    """Makes a widget's state conditional on another field's value.

    ``value`` is a string or a list of strings for the comparison
    conditions and absent for isEmpty/isNotEmpty. Numeric targets are
    stored as strings.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    parent_field_id: str
    condition: DependencyCondition
    value: str | list[str] | None = None
    action: DependencyAction

    @property
    def target(self) -> DependencyTarget | None:
        """The comparison target as a tagged variant, if the condition uses one."""
        if self.condition not in VALUE_CONDITIONS or self.value is None:
            return None
        if isinstance(self.value, list):
            return MultiValue(tuple(self.value))
        return SingleValue(self.value)


class ColumnValidation(_SchemaModel):
    """Cell-level bounds for a table column."""

    minimum: float | None = Field(default=None, alias="min")
    maximum: float | None = Field(default=None, alias="max")
    pattern: str | None = None


class TableColumn(_SchemaModel):
    """A column of a table widget."""

    model_config = ConfigDict(extra="allow")

    id: str
    header: str = ""
    field: str | None = None
    type: ColumnType = ColumnType.TEXT
    width: int | str | None = None
    editable: bool = True
    required: bool = False
    options: list[SelectOption] = Field(default_factory=list)
    formula: str | None = None
    default_value: Any = None
    validation: ColumnValidation | None = None


class OptionsMapping(_SchemaModel):
    """Where to find options in an API response."""

    path: str
    value_field: str
    label_field: str


class ValueMapping(_SchemaModel):
    """Where to find a scalar value in an API response."""

    path: str


class TableDataMapping(_SchemaModel):
    """Where to find table rows in an API response, and how to map cells."""

    path: str
    columns: dict[str, str] = Field(default_factory=dict)


class ResponseMapping(_SchemaModel):
    """How to turn a raw API response into widget data."""

    options: OptionsMapping | None = None
    value: ValueMapping | None = None
    table_data: TableDataMapping | None = None


class ApiConfig(_SchemaModel):
    """HTTP call that populates a widget."""

    url: str
    method: HttpMethod = HttpMethod.GET
    headers: dict[str, str] | None = None
    params: dict[str, Any] | None = None
    body: Any = None
    response_mapping: ResponseMapping | None = None
    mock_response: Any = None
    use_mock: bool = False


class ApiBindingOptions(_SchemaModel):
    """API binding attached to a widget."""

    api_config: ApiConfig | None = None
    load_on_render: bool = False
    refresh_triggers: list[str] = Field(default_factory=list)


class Widget(_SchemaModel):
    """The atomic form field descriptor.

    ``required``, ``disabled`` and ``hidden`` are declared defaults; the
    dependency evaluator derives the runtime state from them. Unknown keys
    are kept so type-specific attributes survive a round-trip.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: WidgetType
    label: str = ""
    field: str = ""
    required: bool = False
    disabled: bool = False
    hidden: bool = False
    default_value: Any = None
    validations: list[Validation] = Field(default_factory=list)
    options: list[SelectOption] = Field(default_factory=list)
    placeholder: str | None = None
    helper_text: str | None = None
    width: int | str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    minimum: float | None = Field(default=None, alias="min")
    maximum: float | None = Field(default=None, alias="max")

    # Table widget
    columns: list[TableColumn] = Field(default_factory=list)
    min_rows: int | None = None
    max_rows: int | None = None
    allow_add_rows: bool = True
    allow_delete_rows: bool = True
    show_row_numbers: bool = True
    show_totals: bool = False

    dependency: WidgetDependency | None = None
    api_binding: ApiBindingOptions | None = None

    @property
    def holds_value(self) -> bool:
        """Whether this widget stores a value under ``field``."""
        return get_widget_meta(self.type).holds_value


class Section(_SchemaModel):
    """A titled grid of widgets inside an accordion."""

    id: str
    title: str
    columns: int = Field(default=1, ge=1)
    widgets: list[Widget] = Field(default_factory=list)


class Accordion(_SchemaModel):
    """A collapsible group of sections."""

    id: str
    title: str
    is_open: bool = True
    sections: list[Section] = Field(default_factory=list)


class ScreenConfig(_SchemaModel):
    """Root document of a screen."""

    accordions: list[Accordion] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Serialization
# =============================================================================


def dump_screen_config(config: ScreenConfig) -> dict[str, Any]:
    """Convert a ScreenConfig to its JSON-compatible document form."""
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


def screen_config_to_json(config: ScreenConfig, indent: int | None = None) -> str:
    """Serialize a ScreenConfig to a JSON string."""
    return json.dumps(dump_screen_config(config), indent=indent)


def load_screen_config(data: dict[str, Any] | str | bytes) -> ScreenConfig:
    """Parse a ScreenConfig from a document dict or JSON text.

    Raises:
        pydantic.ValidationError: If the document does not match the model.
    """
    if isinstance(data, (str, bytes)):
        return ScreenConfig.model_validate_json(data)
    return ScreenConfig.model_validate(data)


def export_json_schema() -> dict[str, Any]:
    """Export the JSON Schema of a screen configuration document."""
    return ScreenConfig.model_json_schema(by_alias=True)


# =============================================================================
# Traversal
# =============================================================================


def iter_widgets(config: ScreenConfig) -> Iterator[Widget]:
    """Yield every widget in document order."""
    for accordion in config.accordions:
        for section in accordion.sections:
            yield from section.widgets


def find_widget(config: ScreenConfig, widget_id: str) -> Widget | None:
    """Find a widget anywhere in the screen by id."""
    for widget in iter_widgets(config):
        if widget.id == widget_id:
            return widget
    return None


def value_widgets(config: ScreenConfig) -> list[Widget]:
    """Widgets that store a value in form state."""
    return [w for w in iter_widgets(config) if w.holds_value]


# =============================================================================
# Immutable Editing
# =============================================================================


def generate_id() -> str:
    """Generate a unique id for a new accordion, section or widget."""
    return uuid4().hex


def create_empty_screen_config() -> ScreenConfig:
    """Create the starter screen: one open accordion with one 2-column section."""
    return ScreenConfig(
        accordions=[
            Accordion(
                id=generate_id(),
                title="New Accordion",
                is_open=True,
                sections=[
                    Section(
                        id=generate_id(),
                        title="New Section",
                        columns=2,
                        widgets=[],
                    )
                ],
            )
        ],
        metadata={},
    )


def _replace(model: BaseModel, changes: dict[str, Any]) -> Any:
    """Return a re-validated copy of ``model`` with ``changes`` applied."""
    data = model.model_dump()
    data.update(changes)
    return type(model).model_validate(data)


def _insert(items: list[Any], item: Any, index: int | None) -> list[Any]:
    result = list(items)
    if index is None:
        result.append(item)
    else:
        result.insert(index, item)
    return result


def _accordion_index(config: ScreenConfig, accordion_id: str) -> int:
    for i, accordion in enumerate(config.accordions):
        if accordion.id == accordion_id:
            return i
    raise KeyError(f"Unknown accordion '{accordion_id}'")


def _section_index(accordion: Accordion, section_id: str) -> int:
    for i, section in enumerate(accordion.sections):
        if section.id == section_id:
            return i
    raise KeyError(f"Unknown section '{section_id}' in accordion '{accordion.id}'")


def _with_accordion(
    config: ScreenConfig, index: int, accordion: Accordion | None
) -> ScreenConfig:
    accordions = list(config.accordions)
    if accordion is None:
        del accordions[index]
    else:
        accordions[index] = accordion
    return config.model_copy(update={"accordions": accordions})


def _with_section(
    config: ScreenConfig,
    accordion_id: str,
    section_id: str,
    section: Section | None,
) -> ScreenConfig:
    a_index = _accordion_index(config, accordion_id)
    accordion = config.accordions[a_index]
    s_index = _section_index(accordion, section_id)
    sections = list(accordion.sections)
    if section is None:
        del sections[s_index]
    else:
        sections[s_index] = section
    return _with_accordion(
        config, a_index, accordion.model_copy(update={"sections": sections})
    )


def add_accordion(
    config: ScreenConfig, accordion: Accordion, index: int | None = None
) -> ScreenConfig:
    """Return a new config with ``accordion`` inserted (appended by default)."""
    return config.model_copy(
        update={"accordions": _insert(config.accordions, accordion, index)}
    )


def update_accordion(
    config: ScreenConfig, accordion_id: str, **changes: Any
) -> ScreenConfig:
    """Return a new config with the accordion's attributes replaced."""
    index = _accordion_index(config, accordion_id)
    return _with_accordion(
        config, index, _replace(config.accordions[index], changes)
    )


def remove_accordion(config: ScreenConfig, accordion_id: str) -> ScreenConfig:
    """Return a new config without the accordion and everything inside it."""
    return _with_accordion(config, _accordion_index(config, accordion_id), None)


def add_section(
    config: ScreenConfig,
    accordion_id: str,
    section: Section,
    index: int | None = None,
) -> ScreenConfig:
    """Return a new config with ``section`` added to an accordion."""
    a_index = _accordion_index(config, accordion_id)
    accordion = config.accordions[a_index]
    sections = _insert(accordion.sections, section, index)
    return _with_accordion(
        config, a_index, accordion.model_copy(update={"sections": sections})
    )


def update_section(
    config: ScreenConfig, accordion_id: str, section_id: str, **changes: Any
) -> ScreenConfig:
    """Return a new config with the section's attributes replaced."""
    accordion = config.accordions[_accordion_index(config, accordion_id)]
    section = accordion.sections[_section_index(accordion, section_id)]
    return _with_section(
        config, accordion_id, section_id, _replace(section, changes)
    )


def remove_section(
    config: ScreenConfig, accordion_id: str, section_id: str
) -> ScreenConfig:
    """Return a new config without the section and its widgets."""
    return _with_section(config, accordion_id, section_id, None)


def add_widget(
    config: ScreenConfig,
    accordion_id: str,
    section_id: str,
    widget: Widget,
    index: int | None = None,
) -> ScreenConfig:
    """Return a new config with ``widget`` added to a section."""
    accordion = config.accordions[_accordion_index(config, accordion_id)]
    section = accordion.sections[_section_index(accordion, section_id)]
    widgets = _insert(section.widgets, widget, index)
    return _with_section(
        config,
        accordion_id,
        section_id,
        section.model_copy(update={"widgets": widgets}),
    )


def _locate_widget(config: ScreenConfig, widget_id: str) -> tuple[str, str, int]:
    for accordion in config.accordions:
        for section in accordion.sections:
            for i, widget in enumerate(section.widgets):
                if widget.id == widget_id:
                    return accordion.id, section.id, i
    raise KeyError(f"Unknown widget '{widget_id}'")


def update_widget(config: ScreenConfig, widget_id: str, **changes: Any) -> ScreenConfig:
    """Return a new config with the widget's attributes replaced.

    Widget ids are global, so no accordion/section path is needed.
    """
    accordion_id, section_id, index = _locate_widget(config, widget_id)
    accordion = config.accordions[_accordion_index(config, accordion_id)]
    section = accordion.sections[_section_index(accordion, section_id)]
    widgets = list(section.widgets)
    widgets[index] = _replace(widgets[index], changes)
    return _with_section(
        config,
        accordion_id,
        section_id,
        section.model_copy(update={"widgets": widgets}),
    )


def remove_widget(config: ScreenConfig, widget_id: str) -> ScreenConfig:
    """Return a new config without the widget."""
    accordion_id, section_id, index = _locate_widget(config, widget_id)
    accordion = config.accordions[_accordion_index(config, accordion_id)]
    section = accordion.sections[_section_index(accordion, section_id)]
    widgets = list(section.widgets)
    del widgets[index]
    return _with_section(
        config,
        accordion_id,
        section_id,
        section.model_copy(update={"widgets": widgets}),
    )


__all__ = [
    # Enums
    "WidgetType",
    "WidgetCategory",
    "DependencyCondition",
    "DependencyAction",
    "ValidationType",
    "ColumnType",
    "HttpMethod",
    "VALUE_CONDITIONS",
    # Metadata
    "WidgetMeta",
    "WIDGET_REGISTRY",
    "get_widget_meta",
    "get_widget_category",
    # Dependency targets
    "SingleValue",
    "MultiValue",
    "DependencyTarget",
    # Models
    "SelectOption",
    "Validation",
    "WidgetDependency",
    "ColumnValidation",
    "TableColumn",
    "OptionsMapping",
    "ValueMapping",
    "TableDataMapping",
    "ResponseMapping",
    "ApiConfig",
    "ApiBindingOptions",
    "Widget",
    "Section",
    "Accordion",
    "ScreenConfig",
    # Serialization
    "dump_screen_config",
    "screen_config_to_json",
    "load_screen_config",
    "export_json_schema",
    # Traversal
    "iter_widgets",
    "find_widget",
    "value_widgets",
    # Editing
    "generate_id",
    "create_empty_screen_config",
    "add_accordion",
    "update_accordion",
    "remove_accordion",
    "add_section",
    "update_section",
    "remove_section",
    "add_widget",
    "update_widget",
    "remove_widget",
]
