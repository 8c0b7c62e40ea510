"""Unit tests for validation module."""

import pytest

from screen_builder.schema import (
    Accordion,
    ScreenConfig,
    Section,
    Widget,
    WidgetDependency,
    WidgetType,
    load_screen_config,
    screen_config_to_json,
)
from screen_builder.validation import (
    ValidationResult,
    is_valid,
    lint_screen_config,
    validate_screen_config,
)


def _screen(*widgets: Widget) -> ScreenConfig:
    return ScreenConfig(
        accordions=[
            Accordion(
                id="a",
                title="A",
                sections=[Section(id="s", title="S", widgets=list(widgets))],
            )
        ]
    )


class TestShallowShape:
    """Tests for the short-circuiting top-level checks."""

    @pytest.mark.unit
    @pytest.mark.parametrize("candidate", [None, "text", 42, True])
    def test_non_object_rejected(self, candidate):
        """Anything but an object yields exactly one error."""
        result = validate_screen_config(candidate)
        assert result.valid is False
        assert result.errors == ["Screen configuration must be an object"]

    @pytest.mark.unit
    @pytest.mark.parametrize("candidate", [[], [{"accordions": []}]])
    def test_array_lacks_accordions(self, candidate):
        """An array is not refused as a non-object; it has no accordions."""
        result = validate_screen_config(candidate)
        assert result.errors == ["Screen configuration must contain an accordions array"]

    @pytest.mark.unit
    @pytest.mark.parametrize("candidate", [{}, {"accordions": {}}, {"accordions": "x"}])
    def test_accordions_must_be_array(self, candidate):
        """Missing or non-array accordions yields exactly one error."""
        result = validate_screen_config(candidate)
        assert result.errors == [
            "Screen configuration must contain an accordions array"
        ]

    @pytest.mark.unit
    def test_empty_screen_is_valid(self):
        """Zero accordions is structurally legal."""
        result = validate_screen_config({"accordions": []})
        assert result.valid is True
        assert result.errors == []


class TestAccumulation:
    """Tests for deeper, accumulating checks."""

    @pytest.mark.unit
    def test_accordion_missing_id_and_sections(self):
        """Both accordion problems are reported."""
        result = validate_screen_config({"accordions": [{"title": "A"}]})
        assert result.valid is False
        assert "Accordion at index 0 is missing an id" in result.errors
        assert "Accordion at index 0 is missing sections array" in result.errors

    @pytest.mark.unit
    def test_all_violations_reported(self):
        """Errors from every accordion are collected in document order."""
        candidate = {
            "accordions": [
                {
                    "id": "a",
                    "title": "Applicant",
                    "sections": [
                        {"id": "s1", "columns": 1, "widgets": []},
                        {
                            "id": "s2",
                            "columns": 2,
                            "widgets": [{"type": "text", "field": "name"}],
                        },
                    ],
                },
                {
                    "id": "b",
                    "title": "Policy",
                    "sections": [{"id": "s3", "columns": 1, "widgets": []}],
                },
            ]
        }
        result = validate_screen_config(candidate)
        assert result.errors == [
            "Section at index 0 in accordion Applicant is missing a title",
            "Section at index 1 in accordion Applicant is missing a title",
            "Widget at index 0 in section 1 is missing an id",
            "Section at index 0 in accordion Policy is missing a title",
        ]

    @pytest.mark.unit
    def test_three_distinct_errors(self):
        """A config with 2 missing section titles and 1 missing widget id."""
        candidate = {
            "accordions": [
                {
                    "id": "a",
                    "title": "Applicant",
                    "sections": [
                        {"id": "s1", "columns": 1, "widgets": []},
                        {
                            "id": "s2",
                            "columns": 2,
                            "widgets": [{"type": "text", "field": "name"}],
                        },
                    ],
                }
            ]
        }
        result = validate_screen_config(candidate)
        assert result.errors == [
            "Section at index 0 in accordion Applicant is missing a title",
            "Section at index 1 in accordion Applicant is missing a title",
            "Widget at index 0 in section 1 is missing an id",
        ]

    @pytest.mark.unit
    def test_accordion_label_falls_back_to_index(self):
        """Untitled accordions are named by index in section errors."""
        candidate = {
            "accordions": [
                {"id": "a", "sections": [{"id": "s", "title": "S", "widgets": []}]}
            ]
        }
        result = validate_screen_config(candidate)
        assert result.errors == [
            "Accordion at index 0 is missing a title",
            "Section at index 0 in accordion 0 is missing columns property",
        ]

    @pytest.mark.unit
    def test_columns_must_be_numeric(self):
        """String or boolean columns are rejected."""
        for columns in ("2", True, None):
            candidate = {
                "accordions": [
                    {
                        "id": "a",
                        "title": "A",
                        "sections": [
                            {"id": "s", "title": "S", "columns": columns, "widgets": []}
                        ],
                    }
                ]
            }
            errors = validate_screen_config(candidate).errors
            assert errors == ["Section at index 0 in accordion A is missing columns property"]

    @pytest.mark.unit
    def test_missing_widgets_array(self):
        """A section without widgets reports it and skips widget checks."""
        candidate = {
            "accordions": [
                {
                    "id": "a",
                    "title": "A",
                    "sections": [{"id": "s", "title": "S", "columns": 1}],
                }
            ]
        }
        errors = validate_screen_config(candidate).errors
        assert errors == ["Section at index 0 in accordion A is missing widgets array"]

    @pytest.mark.unit
    def test_widget_field_checks(self):
        """Widgets need id, type and field."""
        candidate = {
            "accordions": [
                {
                    "id": "a",
                    "title": "A",
                    "sections": [
                        {"id": "s", "title": "Contact", "columns": 1, "widgets": [{}]}
                    ],
                }
            ]
        }
        errors = validate_screen_config(candidate).errors
        assert errors == [
            "Widget at index 0 in section Contact is missing an id",
            "Widget at index 0 in section Contact is missing a type",
            "Widget at index 0 in section Contact is missing a field",
        ]

    @pytest.mark.unit
    def test_require_label(self):
        """The stricter variant also needs a label."""
        candidate = {
            "accordions": [
                {
                    "id": "a",
                    "title": "A",
                    "sections": [
                        {
                            "id": "s",
                            "title": "S",
                            "columns": 1,
                            "widgets": [{"id": "w", "type": "text", "field": "f"}],
                        }
                    ],
                }
            ]
        }
        assert validate_screen_config(candidate).valid is True
        strict = validate_screen_config(candidate, require_label=True)
        assert strict.errors == ["Widget at index 0 in section S is missing a label"]

    @pytest.mark.unit
    def test_non_object_children_treated_as_empty(self):
        """A null accordion entry reports its missing fields."""
        errors = validate_screen_config({"accordions": [None]}).errors
        assert errors == [
            "Accordion at index 0 is missing an id",
            "Accordion at index 0 is missing a title",
            "Accordion at index 0 is missing sections array",
        ]


class TestModelInput:
    """Tests for validating parsed models."""

    @pytest.mark.unit
    def test_sample_screen_valid(self, sample_screen):
        """The shared sample passes validation."""
        assert is_valid(sample_screen)

    @pytest.mark.unit
    def test_round_trip_stays_valid(self, sample_screen, sample_screen_dict):
        """A valid config is still valid after a JSON round-trip."""
        assert validate_screen_config(sample_screen_dict).valid
        reloaded = load_screen_config(screen_config_to_json(sample_screen))
        assert validate_screen_config(reloaded).valid

    @pytest.mark.unit
    def test_result_to_dict(self):
        """Results serialize to plain dicts."""
        result = ValidationResult(valid=False, errors=["boom"])
        assert result.to_dict() == {"valid": False, "errors": ["boom"]}


class TestLint:
    """Tests for lint_screen_config."""

    @pytest.mark.unit
    def test_clean_sample(self, sample_screen):
        """The sample has no authoring issues."""
        assert lint_screen_config(sample_screen) == []

    @pytest.mark.unit
    def test_duplicate_ids(self):
        """Duplicate widget ids are reported."""
        config = _screen(
            Widget(id="dupe", type=WidgetType.TEXT, field="a"),
            Widget(id="dupe", type=WidgetType.TEXT, field="b"),
        )
        issues = lint_screen_config(config)
        assert [i.issue_type for i in issues] == ["duplicate_id"]
        assert "appears 2 times" in issues[0].message

    @pytest.mark.unit
    def test_duplicate_fields(self):
        """Two value widgets sharing a field are reported."""
        config = _screen(
            Widget(id="w1", type=WidgetType.TEXT, field="name"),
            Widget(id="w2", type=WidgetType.NUMBER, field="name"),
        )
        issues = lint_screen_config(config)
        assert [i.issue_type for i in issues] == ["duplicate_field"]
        assert issues[0].widget_id == "w2"

    @pytest.mark.unit
    def test_display_widgets_may_share_fields(self):
        """heading/divider fields are exempt from uniqueness."""
        config = _screen(
            Widget(id="h1", type=WidgetType.HEADING, field="x"),
            Widget(id="d1", type=WidgetType.DIVIDER, field="x"),
        )
        assert lint_screen_config(config) == []

    @pytest.mark.unit
    def test_unknown_parent(self):
        """A dependency on a field nobody declares is reported."""
        config = _screen(
            Widget(
                id="w",
                type=WidgetType.TEXT,
                field="a",
                dependency=WidgetDependency(
                    parent_field_id="ghost", condition="isEmpty", action="hide"
                ),
            )
        )
        issues = lint_screen_config(config)
        assert [i.issue_type for i in issues] == ["unknown_parent"]

    @pytest.mark.unit
    def test_self_reference(self):
        """A dependency on the widget's own field is reported."""
        config = _screen(
            Widget(
                id="w",
                type=WidgetType.TEXT,
                field="a",
                dependency=WidgetDependency(
                    parent_field_id="a", condition="isEmpty", action="hide"
                ),
            )
        )
        issues = lint_screen_config(config)
        assert [i.issue_type for i in issues] == ["self_reference"]

    @pytest.mark.unit
    def test_condition_value_mismatch(self):
        """Value presence must match the condition kind."""
        config = _screen(
            Widget(id="p", type=WidgetType.TEXT, field="p"),
            Widget(
                id="w1",
                type=WidgetType.TEXT,
                field="a",
                dependency=WidgetDependency(
                    parent_field_id="p", condition="equals", action="show"
                ),
            ),
            Widget(
                id="w2",
                type=WidgetType.TEXT,
                field="b",
                dependency=WidgetDependency(
                    parent_field_id="p", condition="isEmpty", value="x", action="show"
                ),
            ),
        )
        issues = {i.widget_id: i.issue_type for i in lint_screen_config(config)}
        assert issues == {"w1": "missing_value", "w2": "unused_value"}
