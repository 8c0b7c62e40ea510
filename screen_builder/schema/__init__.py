"""Screen configuration schema.

Typed models for accordions, sections, widgets, validations and
dependency rules, plus immutable editing helpers.

Example usage:
    >>> from screen_builder.schema import Widget, WidgetType, load_screen_config
    >>> config = load_screen_config({"accordions": []})
    >>> widget = Widget(id="w1", type=WidgetType.TEXT, field="firstName")
"""

from .lib import (
    VALUE_CONDITIONS,
    WIDGET_REGISTRY,
    Accordion,
    ApiBindingOptions,
    ApiConfig,
    ColumnType,
    ColumnValidation,
    DependencyAction,
    DependencyCondition,
    DependencyTarget,
    HttpMethod,
    MultiValue,
    OptionsMapping,
    ResponseMapping,
    ScreenConfig,
    Section,
    SelectOption,
    SingleValue,
    TableColumn,
    TableDataMapping,
    Validation,
    ValidationType,
    ValueMapping,
    Widget,
    WidgetCategory,
    WidgetDependency,
    WidgetMeta,
    WidgetType,
    add_accordion,
    add_section,
    add_widget,
    create_empty_screen_config,
    dump_screen_config,
    export_json_schema,
    find_widget,
    generate_id,
    get_widget_category,
    get_widget_meta,
    iter_widgets,
    load_screen_config,
    remove_accordion,
    remove_section,
    remove_widget,
    screen_config_to_json,
    update_accordion,
    update_section,
    update_widget,
    value_widgets,
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
