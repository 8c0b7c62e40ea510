"""Render module: widget-to-control dispatch and text previews.

Maps widgets to control descriptions using their resolved state, and
formats a rendered screen as a text tree for review.
"""

from .lib import (
    Control,
    ControlRenderer,
    RenderedAccordion,
    RenderedScreen,
    RenderedSection,
    RenderError,
    format_screen_tree,
    get_renderer,
    list_renderers,
    preview_screen,
    register_renderer,
    render,
    render_screen,
)

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
