"""Unit tests for rules module."""

import re

import pytest

from screen_builder.dependency import resolve
from screen_builder.schema import Validation, Widget, WidgetDependency, WidgetType
from screen_builder.rules import (
    check_values,
    check_widget,
    get_validator,
    is_blank,
    list_validators,
    register_validator,
    unregister_validator,
)


@pytest.fixture
def postcode_validator():
    """Register a 4-digit postcode validator for one test."""

    @register_validator("postcode")
    def postcode(value, widget):
        return re.fullmatch(r"\d{4}", str(value)) is not None

    yield postcode
    unregister_validator("postcode")


def _text(*rules: Validation, **attrs) -> Widget:
    return Widget(
        id="w", type=WidgetType.TEXT, field="f", label="Name", validations=list(rules), **attrs
    )


class TestBlank:
    """Tests for is_blank."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_blank(self, value):
        assert is_blank(_text(), value) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["x", 0, ["a"], False])
    def test_not_blank(self, value):
        assert is_blank(_text(), value) is False

    @pytest.mark.unit
    def test_unchecked_toggle_is_blank(self):
        """A required checkbox must be ticked."""
        checkbox = Widget(id="c", type=WidgetType.CHECKBOX, field="agree")
        assert is_blank(checkbox, False) is True
        assert is_blank(checkbox, True) is False


class TestCheckWidget:
    """Tests for individual rules."""

    @pytest.mark.unit
    def test_required(self):
        errors = check_widget(_text(), "", required=True)
        assert [(e.rule, e.message) for e in errors] == [("required", "Name is required")]

    @pytest.mark.unit
    def test_required_rule_message(self):
        widget = _text(Validation(type="required", message="Please enter a name"))
        errors = check_widget(widget, None, required=True)
        assert errors[0].message == "Please enter a name"

    @pytest.mark.unit
    def test_required_rule_follows_resolved_state(self):
        """The rule only supplies the message; requiredness is the caller's."""
        widget = _text(Validation(type="required", message="Please enter a name"))
        assert check_widget(widget, None, required=False) == []

    @pytest.mark.unit
    def test_blank_optional_skips_rules(self):
        """Rules only apply once a value is present."""
        widget = _text(Validation(type="minLength", value=3))
        assert check_widget(widget, "", required=False) == []

    @pytest.mark.unit
    def test_min_max(self):
        widget = _text(
            Validation(type="min", value=1), Validation(type="max", value=10)
        )
        assert check_widget(widget, "5", required=False) == []
        assert check_widget(widget, 0, required=False)[0].message == "Name must be at least 1"
        assert check_widget(widget, 11, required=False)[0].message == "Name must be at most 10"
        assert check_widget(widget, "abc", required=False)[0].message == "Name must be a number"

    @pytest.mark.unit
    def test_lengths(self):
        widget = _text(
            Validation(type="minLength", value=2),
            Validation(type="maxLength", value=4, message="Too long"),
        )
        assert check_widget(widget, "abc", required=False) == []
        assert check_widget(widget, "a", required=False)[0].rule == "minLength"
        assert check_widget(widget, "abcde", required=False)[0].message == "Too long"

    @pytest.mark.unit
    def test_pattern(self):
        widget = _text(Validation(type="pattern", value=r"^\d+$"))
        assert check_widget(widget, "123", required=False) == []
        assert check_widget(widget, "12a", required=False)[0].message == (
            "Name has an invalid format"
        )

    @pytest.mark.unit
    def test_invalid_pattern_ignored(self):
        widget = _text(Validation(type="pattern", value="("))
        assert check_widget(widget, "x", required=False) == []

    @pytest.mark.unit
    def test_custom_validator(self, postcode_validator):
        widget = _text(Validation(type="custom", validator="postcode"))
        assert check_widget(widget, "2000", required=False) == []
        errors = check_widget(widget, "20", required=False)
        assert errors[0].rule == "custom"
        assert errors[0].message == "Name is invalid"

    @pytest.mark.unit
    def test_unknown_custom_validator_ignored(self):
        widget = _text(Validation(type="custom", validator="nope"))
        assert check_widget(widget, "x", required=False) == []

    @pytest.mark.unit
    def test_number_bounds(self):
        widget = Widget(
            id="n", type=WidgetType.SLIDER, field="n", label="Level", min=0, max=5
        )
        assert check_widget(widget, 6, required=False)[0].message == (
            "Level must be at most 5"
        )

    @pytest.mark.unit
    def test_table_cells(self):
        widget = Widget.model_validate(
            {
                "id": "t",
                "type": "table",
                "field": "rows",
                "columns": [{"id": "name", "header": "Name", "required": True}],
            }
        )
        value = [{"id": "r1", "cells": {"name": ""}}]
        errors = check_widget(widget, value, required=False)
        assert [e.message for e in errors] == ["Row 1: Name is required"]


class TestRegistry:
    """Tests for the custom validator registry."""

    @pytest.mark.unit
    def test_registered(self, postcode_validator):
        assert "postcode" in list_validators()
        assert get_validator("postcode") is postcode_validator

    @pytest.mark.unit
    def test_unknown_name(self):
        with pytest.raises(KeyError, match="Unknown validator"):
            get_validator("does-not-exist")


class TestCheckValues:
    """Tests for whole-form checks."""

    @pytest.mark.unit
    def test_hidden_required_fields_skipped(self, sample_screen):
        """Hidden required widgets never block submission."""
        errors = check_values(sample_screen, {"contactMethod": "phone", "phone": "555"})
        assert errors == []

    @pytest.mark.unit
    def test_visible_required_reported(self, sample_screen):
        errors = check_values(sample_screen, {"contactMethod": "email"})
        assert [(e.widget_id, e.rule) for e in errors] == [("w-email", "required")]

    @pytest.mark.unit
    def test_dependency_driven_requiredness(self, sample_screen):
        """qtyReason becomes required once qty is filled."""
        values = {"contactMethod": "phone", "phone": "555", "qty": "3"}
        errors = check_values(sample_screen, values)
        assert [(e.field, e.rule) for e in errors] == [("qtyReason", "required")]

    @pytest.mark.unit
    def test_rules_on_visible_values(self, sample_screen):
        values = {"contactMethod": "email", "email": "not-an-email", "qty": "0", "qtyReason": "x"}
        errors = check_values(sample_screen, values)
        assert [(e.field, e.message) for e in errors] == [
            ("email", "Enter a valid e-mail"),
            ("qty", "At least 1"),
        ]

    @pytest.mark.unit
    def test_missing_required_parent(self, sample_screen):
        """An unanswered required radio is reported."""
        errors = check_values(sample_screen, {})
        assert [e.field for e in errors] == ["contactMethod"]

    @pytest.mark.unit
    def test_optional_action_overrides_required_rule(self):
        """An optional dependency whose condition is met lifts a required rule."""
        skip = Widget(id="s", type=WidgetType.CHECKBOX, field="skip", label="Skip")
        notes = Widget(
            id="c",
            type=WidgetType.TEXT,
            field="notes",
            label="Notes",
            validations=[Validation(type="required", message="Notes needed")],
            dependency=WidgetDependency(
                parent_field_id="skip", condition="isNotEmpty", action="optional"
            ),
        )
        values = {"skip": True}
        assert resolve([skip, notes], values)["c"].required is False
        assert check_values([skip, notes], values) == []

    @pytest.mark.unit
    def test_required_rule_applies_without_dependency_override(self):
        notes = Widget(
            id="c",
            type=WidgetType.TEXT,
            field="notes",
            label="Notes",
            validations=[Validation(type="required", message="Notes needed")],
        )
        errors = check_values([notes], {})
        assert [(e.field, e.message) for e in errors] == [("notes", "Notes needed")]
