"""screen-builder: configurable insurance data-entry screens."""

from screen_builder.dependency import ResolvedState, resolve
from screen_builder.render import format_screen_tree, preview_screen, render_screen
from screen_builder.schema import ScreenConfig, Widget, WidgetType, load_screen_config
from screen_builder.state import FormState
from screen_builder.validation import is_valid, lint_screen_config, validate_screen_config

__all__ = [
    # Schema
    "ScreenConfig",
    "Widget",
    "WidgetType",
    "load_screen_config",
    # Validation
    "validate_screen_config",
    "is_valid",
    "lint_screen_config",
    # Dependencies
    "resolve",
    "ResolvedState",
    # Form state
    "FormState",
    # Rendering
    "render_screen",
    "format_screen_tree",
    "preview_screen",
]
