"""Unit tests for the Schema module."""

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from screen_builder.schema import (
    WIDGET_REGISTRY,
    Accordion,
    MultiValue,
    ScreenConfig,
    Section,
    SingleValue,
    Widget,
    WidgetCategory,
    WidgetDependency,
    WidgetType,
    add_accordion,
    add_section,
    add_widget,
    create_empty_screen_config,
    dump_screen_config,
    export_json_schema,
    find_widget,
    get_widget_category,
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


class TestWidgetRegistry:
    """Tests for WIDGET_REGISTRY completeness."""

    @pytest.mark.unit
    def test_all_widget_types_registered(self):
        """Every WidgetType has metadata in registry."""
        for wt in WidgetType:
            assert wt in WIDGET_REGISTRY, f"Missing metadata for {wt}"

    @pytest.mark.unit
    def test_display_types_hold_no_value(self):
        """heading, paragraph and divider are display-only."""
        for wt in (WidgetType.HEADING, WidgetType.PARAGRAPH, WidgetType.DIVIDER):
            assert WIDGET_REGISTRY[wt].holds_value is False
            assert get_widget_category(wt) == WidgetCategory.DISPLAY

    @pytest.mark.unit
    def test_choice_types_flagged(self):
        """Choice widgets are marked choice-based."""
        for wt in (WidgetType.SELECT, WidgetType.RADIO, WidgetType.MULTISELECT):
            assert WIDGET_REGISTRY[wt].choice_based is True

    @pytest.mark.unit
    def test_category_lookup_accepts_string(self):
        """Category lookup works with raw string values."""
        assert get_widget_category("slider") == WidgetCategory.RANGE


class TestModels:
    """Tests for model parsing and aliases."""

    @pytest.mark.unit
    def test_camel_case_aliases(self, sample_screen):
        """JSON camelCase keys populate snake_case attributes."""
        accordion = sample_screen.accordions[0]
        assert accordion.is_open is True
        email = find_widget(sample_screen, "w-email")
        assert email.dependency.parent_field_id == "contactMethod"

    @pytest.mark.unit
    def test_models_are_frozen(self, sample_screen):
        """Attribute assignment is rejected."""
        with pytest.raises(PydanticValidationError):
            sample_screen.accordions[0].title = "Changed"

    @pytest.mark.unit
    def test_extra_widget_attributes_preserved(self):
        """Unknown widget keys survive a round-trip."""
        widget = Widget.model_validate(
            {"id": "w", "type": "slider", "field": "f", "step": 5}
        )
        dumped = widget.model_dump(by_alias=True)
        assert dumped["step"] == 5

    @pytest.mark.unit
    def test_min_max_aliases(self):
        """min/max JSON keys map to minimum/maximum."""
        widget = Widget.model_validate(
            {"id": "w", "type": "slider", "field": "f", "min": 0, "max": 10}
        )
        assert widget.minimum == 0
        assert widget.maximum == 10

    @pytest.mark.unit
    def test_invalid_widget_type_rejected(self):
        """Unknown widget types fail model parsing."""
        with pytest.raises(PydanticValidationError):
            Widget.model_validate({"id": "w", "type": "hologram", "field": "f"})

    @pytest.mark.unit
    def test_section_columns_must_be_positive(self):
        """Section.columns must be at least 1."""
        with pytest.raises(PydanticValidationError):
            Section(id="s", title="S", columns=0)

    @pytest.mark.unit
    def test_holds_value(self):
        """Widget.holds_value follows the registry."""
        assert Widget(id="h", type=WidgetType.HEADING).holds_value is False
        assert Widget(id="t", type=WidgetType.TEXT, field="t").holds_value is True


class TestDependencyTarget:
    """Tests for the tagged dependency value."""

    @pytest.mark.unit
    def test_single_value(self):
        """A string value becomes SingleValue."""
        dep = WidgetDependency(
            parent_field_id="a", condition="equals", value="x", action="show"
        )
        assert dep.target == SingleValue("x")

    @pytest.mark.unit
    def test_multi_value(self):
        """A list value becomes MultiValue."""
        dep = WidgetDependency(
            parent_field_id="a",
            condition="contains",
            value=["x", "y"],
            action="show",
        )
        assert dep.target == MultiValue(("x", "y"))

    @pytest.mark.unit
    def test_emptiness_condition_has_no_target(self):
        """isEmpty ignores any stray value."""
        dep = WidgetDependency(
            parent_field_id="a", condition="isEmpty", value="x", action="show"
        )
        assert dep.target is None

    @pytest.mark.unit
    def test_numeric_value_coerced_to_string(self):
        """Numeric targets are stored as strings."""
        dep = WidgetDependency.model_validate(
            {"parentFieldId": "a", "condition": "equals", "value": 3, "action": "show"}
        )
        assert dep.value == "3"


class TestSerialization:
    """Tests for JSON round-trips."""

    @pytest.mark.unit
    def test_round_trip(self, sample_screen):
        """Serializing and parsing yields an equal config."""
        text = screen_config_to_json(sample_screen)
        assert load_screen_config(text) == sample_screen

    @pytest.mark.unit
    def test_dump_uses_camel_case(self, sample_screen):
        """Dumped documents use the stored key names."""
        doc = dump_screen_config(sample_screen)
        assert "isOpen" in doc["accordions"][0]
        widget = doc["accordions"][0]["sections"][0]["widgets"][1]
        assert widget["dependency"]["parentFieldId"] == "contactMethod"

    @pytest.mark.unit
    def test_dump_drops_absent_values(self):
        """isEmpty dependencies serialize without a value key."""
        widget = Widget(
            id="w",
            type=WidgetType.TEXT,
            field="f",
            dependency=WidgetDependency(
                parent_field_id="a", condition="isEmpty", action="hide"
            ),
        )
        doc = json.loads(widget.model_dump_json(by_alias=True, exclude_none=True))
        assert "value" not in doc["dependency"]

    @pytest.mark.unit
    def test_json_schema_export(self):
        """JSON schema export names the root properties."""
        schema = export_json_schema()
        assert "accordions" in schema["properties"]


class TestTraversal:
    """Tests for widget traversal helpers."""

    @pytest.mark.unit
    def test_iter_widgets_in_document_order(self, sample_screen):
        """Widgets are yielded accordion by accordion, section by section."""
        ids = [w.id for w in iter_widgets(sample_screen)]
        assert ids[:3] == ["w-contact-method", "w-email", "w-phone"]
        assert len(ids) == 8

    @pytest.mark.unit
    def test_find_widget_missing(self, sample_screen):
        """Unknown ids return None."""
        assert find_widget(sample_screen, "nope") is None

    @pytest.mark.unit
    def test_value_widgets_skip_display(self, sample_screen):
        """Display widgets are excluded from value widgets."""
        ids = {w.id for w in value_widgets(sample_screen)}
        assert "w-intro" not in ids
        assert "w-tags" in ids


class TestEditing:
    """Tests for immutable editing helpers."""

    @pytest.mark.unit
    def test_empty_screen_template(self):
        """Starter screen has one accordion with one 2-column section."""
        config = create_empty_screen_config()
        assert len(config.accordions) == 1
        section = config.accordions[0].sections[0]
        assert section.columns == 2
        assert section.widgets == []

    @pytest.mark.unit
    def test_add_accordion_leaves_original_untouched(self):
        """Adding returns a new config."""
        config = ScreenConfig()
        updated = add_accordion(config, Accordion(id="a", title="A"))
        assert config.accordions == []
        assert [a.id for a in updated.accordions] == ["a"]

    @pytest.mark.unit
    def test_add_accordion_at_index(self):
        """Accordions can be inserted at a position."""
        config = ScreenConfig(accordions=[Accordion(id="b", title="B")])
        updated = add_accordion(config, Accordion(id="a", title="A"), index=0)
        assert [a.id for a in updated.accordions] == ["a", "b"]

    @pytest.mark.unit
    def test_update_accordion(self, sample_screen):
        """Updating replaces only the targeted accordion."""
        updated = update_accordion(sample_screen, "acc-applicant", title="Insured")
        assert updated.accordions[0].title == "Insured"
        assert sample_screen.accordions[0].title == "Applicant"
        assert updated.accordions[0].sections == sample_screen.accordions[0].sections

    @pytest.mark.unit
    def test_remove_accordion_cascades(self, sample_screen):
        """Removing an accordion removes its widgets."""
        updated = remove_accordion(sample_screen, "acc-applicant")
        assert list(iter_widgets(updated)) == []

    @pytest.mark.unit
    def test_section_operations(self, sample_screen):
        """Sections can be added, updated and removed."""
        updated = add_section(
            sample_screen, "acc-applicant", Section(id="sec-new", title="New")
        )
        assert updated.accordions[0].sections[-1].id == "sec-new"

        updated = update_section(updated, "acc-applicant", "sec-new", columns=3)
        assert updated.accordions[0].sections[-1].columns == 3

        updated = remove_section(updated, "acc-applicant", "sec-new")
        assert updated == sample_screen

    @pytest.mark.unit
    def test_widget_operations(self, sample_screen):
        """Widgets can be added, updated and removed by global id."""
        widget = Widget(id="w-new", type=WidgetType.TEXT, field="nickname")
        updated = add_widget(sample_screen, "acc-applicant", "sec-contact", widget)
        assert find_widget(updated, "w-new") == widget

        updated = update_widget(updated, "w-new", label="Nickname", required=True)
        new = find_widget(updated, "w-new")
        assert new.label == "Nickname"
        assert new.required is True

        updated = remove_widget(updated, "w-new")
        assert updated == sample_screen

    @pytest.mark.unit
    def test_update_widget_revalidates(self, sample_screen):
        """Invalid changes are rejected."""
        with pytest.raises(PydanticValidationError):
            update_widget(sample_screen, "w-email", type="hologram")

    @pytest.mark.unit
    def test_unknown_ids_raise(self, sample_screen):
        """Editing an unknown node raises KeyError."""
        with pytest.raises(KeyError, match="Unknown accordion"):
            remove_accordion(sample_screen, "missing")
        with pytest.raises(KeyError, match="Unknown section"):
            remove_section(sample_screen, "acc-applicant", "missing")
        with pytest.raises(KeyError, match="Unknown widget"):
            remove_widget(sample_screen, "missing")
