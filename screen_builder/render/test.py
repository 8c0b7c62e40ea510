"""Unit tests for render module."""

import pytest

from screen_builder.dependency import UNSET, ResolvedState
from screen_builder.schema import SelectOption, Widget, WidgetCategory, WidgetType
from screen_builder.render import (
    ControlRenderer,
    RenderError,
    format_screen_tree,
    get_renderer,
    list_renderers,
    preview_screen,
    render,
    render_screen,
)
from screen_builder.state import FormState

VISIBLE = ResolvedState(visible=True, enabled=True, required=False)


class TestRendererRegistry:
    """Tests for renderer registration."""

    @pytest.mark.unit
    def test_every_category_has_renderer(self):
        """Each widget category is covered by a built-in renderer."""
        assert list_renderers() == sorted(c.value for c in WidgetCategory)
        for category in WidgetCategory:
            assert isinstance(get_renderer(category), ControlRenderer)

    @pytest.mark.unit
    def test_unknown_category(self):
        with pytest.raises(ValueError):
            get_renderer("hologram")

    @pytest.mark.unit
    def test_render_error_carries_widget(self):
        error = RenderError("boom", widget_id="w1")
        assert error.widget_id == "w1"
        assert str(error) == "boom"


class TestRender:
    """Tests for single-widget dispatch."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "widget_type,kind",
        [
            (WidgetType.TEXT, "text-input"),
            (WidgetType.NUMBER, "number-input"),
            (WidgetType.EMAIL, "email-input"),
            (WidgetType.PASSWORD, "password-input"),
            (WidgetType.TEXTAREA, "textarea"),
            (WidgetType.SELECT, "select"),
            (WidgetType.MULTISELECT, "multi-select"),
            (WidgetType.RADIO, "radio-group"),
            (WidgetType.AUTOCOMPLETE, "autocomplete"),
            (WidgetType.CHECKBOX, "checkbox"),
            (WidgetType.SWITCH, "switch"),
            (WidgetType.DATE, "date-picker"),
            (WidgetType.DATETIME, "datetime-picker"),
            (WidgetType.SLIDER, "slider"),
            (WidgetType.TABLE, "data-grid"),
            (WidgetType.CUSTOM, "custom"),
            (WidgetType.HEADING, "heading"),
            (WidgetType.PARAGRAPH, "paragraph"),
            (WidgetType.DIVIDER, "divider"),
        ],
    )
    def test_control_families(self, widget_type, kind):
        widget = Widget(id="w", type=widget_type, field="f", label="L")
        assert render(widget, VISIBLE, UNSET).kind == kind

    @pytest.mark.unit
    def test_hidden_renders_nothing(self):
        widget = Widget(id="w", type=WidgetType.TEXT, field="f")
        state = ResolvedState(visible=False, enabled=True, required=True)
        assert render(widget, state, "x") is None

    @pytest.mark.unit
    def test_flags_come_from_resolved_state(self):
        """Declared flags are ignored in favour of the resolved ones."""
        widget = Widget(id="w", type=WidgetType.TEXT, field="f", required=False)
        state = ResolvedState(visible=True, enabled=False, required=True)
        control = render(widget, state, "x")
        assert control.enabled is False
        assert control.required is True
        assert control.value == "x"

    @pytest.mark.unit
    def test_display_ignores_flags(self):
        """Headings render statically whatever the state says."""
        widget = Widget(id="h", type=WidgetType.HEADING, label="Title")
        state = ResolvedState(visible=True, enabled=False, required=True)
        control = render(widget, state, UNSET)
        assert control.static is True
        assert control.enabled is True
        assert control.required is False
        assert control.on_change is None

    @pytest.mark.unit
    def test_on_change_passed_through(self):
        received = []
        widget = Widget(id="w", type=WidgetType.TEXT, field="f")
        control = render(widget, VISIBLE, UNSET, on_change=received.append)
        control.on_change("new")
        assert received == ["new"]

    @pytest.mark.unit
    def test_option_override(self):
        widget = Widget(
            id="s",
            type=WidgetType.SELECT,
            field="s",
            options=[SelectOption(value="a", label="A")],
        )
        assert [o.value for o in render(widget, VISIBLE, UNSET).options] == ["a"]
        override = [SelectOption(value="b", label="B")]
        assert render(widget, VISIBLE, UNSET, options=override).options == override

    @pytest.mark.unit
    def test_value_presentation(self):
        multi = Widget(id="m", type=WidgetType.MULTISELECT, field="m")
        assert render(multi, VISIBLE, UNSET).value == []
        assert render(multi, VISIBLE, "a").value == ["a"]
        toggle = Widget(id="t", type=WidgetType.CHECKBOX, field="t")
        assert render(toggle, VISIBLE, UNSET).value is False

    @pytest.mark.unit
    def test_slider_bounds(self):
        slider = Widget.model_validate(
            {"id": "s", "type": "slider", "field": "s", "min": 1, "max": 5, "step": 0.5}
        )
        props = render(slider, VISIBLE, 3).props
        assert props == {"min": 1, "max": 5, "step": 0.5}

    @pytest.mark.unit
    def test_table_grid(self):
        """Tables get padded rows, columns and totals."""
        table = Widget.model_validate(
            {
                "id": "t",
                "type": "table",
                "field": "items",
                "minRows": 2,
                "showTotals": True,
                "columns": [
                    {"id": "amount", "header": "Amount", "type": "number"},
                ],
            }
        )
        value = [{"id": "r1", "cells": {"amount": "4"}}]
        control = render(table, VISIBLE, value)
        assert len(control.value) == 2
        assert control.value[0] == {"id": "r1", "cells": {"amount": "4"}}
        assert control.props["totals"] == {"amount": 4.0}
        assert control.props["canDeleteRow"] is False
        assert control.props["columns"][0]["header"] == "Amount"

    @pytest.mark.unit
    def test_table_padding_is_repeatable(self):
        """Rendering the same table twice gives the same padded rows."""
        table = Widget.model_validate(
            {
                "id": "t",
                "type": "table",
                "field": "items",
                "minRows": 2,
                "columns": [{"id": "amount", "header": "Amount", "type": "number"}],
            }
        )
        first = render(table, VISIBLE, UNSET)
        second = render(table, VISIBLE, UNSET)
        assert first.value == second.value
        assert [row["id"] for row in first.value] == ["t-row-1", "t-row-2"]


class TestRenderScreen:
    """Tests for whole-screen rendering."""

    @pytest.mark.unit
    def test_hidden_widgets_excluded(self, sample_screen):
        state = FormState(sample_screen, initial_values={"contactMethod": "email"})
        screen = render_screen(sample_screen, state)
        ids = [c.widget_id for c in screen.controls]
        assert "w-email" in ids
        assert "w-phone" not in ids

    @pytest.mark.unit
    def test_on_change_writes_form_state(self, sample_screen):
        """Controls write their own field and re-resolution follows."""
        state = FormState(sample_screen)
        screen = render_screen(sample_screen, state)
        radio = next(c for c in screen.controls if c.field == "contactMethod")
        radio.on_change("phone")
        assert state.get("contactMethod") == "phone"
        assert state.state_of("w-phone").visible is True

    @pytest.mark.unit
    def test_fetch_error_surfaces(self, sample_screen):
        state = FormState(sample_screen)
        state.set_fetch_error("w-tags", "HTTP 503")
        screen = render_screen(sample_screen, state)
        tags = next(c for c in screen.controls if c.widget_id == "w-tags")
        assert tags.error == "HTTP 503"

    @pytest.mark.unit
    def test_to_dict(self, sample_screen):
        screen = render_screen(sample_screen, FormState(sample_screen))
        data = screen.to_dict()
        section = data["accordions"][0]["sections"][0]
        assert section["columns"] == 2
        assert section["controls"][0]["widgetId"] == "w-contact-method"
        assert "on_change" not in section["controls"][0]


class TestFormatScreenTree:
    """Tests for the text preview."""

    @pytest.mark.unit
    def test_tree(self, sample_screen):
        state = FormState(sample_screen, initial_values={"contactMethod": "email"})
        tree = format_screen_tree(render_screen(sample_screen, state))
        assert tree == "\n".join(
            [
                "Applicant [accordion, open]",
                "├── Contact [section, 2 columns]",
                "│   ├── Preferred contact [radio-group, required] = 'email'",
                "│   └── E-mail address [email-input, required]",
                "└── Notes [section, 1 column]",
                "    ├── Additional details [heading]",
                "    ├── Tags [multi-select]",
                "    ├── Escalation notes [textarea, disabled]",
                "    ├── Quantity [number-input]",
                "    └── Reason for quantity [text-input]",
            ]
        )

    @pytest.mark.unit
    def test_preview_screen(self, sample_screen):
        tree = preview_screen(sample_screen, {"contactMethod": "phone", "qty": "2"})
        assert "Phone number [text-input, required]" in tree
        assert "E-mail address" not in tree
        assert "Reason for quantity [text-input, required]" in tree
