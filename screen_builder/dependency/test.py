"""Unit tests for the dependency evaluator."""

import math

import pytest

from screen_builder.dependency import (
    UNSET,
    DependencyIndex,
    ResolvedState,
    evaluate_condition,
    is_empty,
    resolve,
    resolve_widget,
    stringify,
)
from screen_builder.schema import (
    Validation,
    Widget,
    WidgetDependency,
    WidgetType,
    iter_widgets,
)


def _widget(
    condition: str | None = None,
    value=None,
    action: str = "show",
    parent: str = "parent",
    widget_id: str = "child",
    field: str = "child",
    **attrs,
) -> Widget:
    dependency = None
    if condition is not None:
        dependency = WidgetDependency(
            parent_field_id=parent, condition=condition, value=value, action=action
        )
    return Widget(
        id=widget_id, type=WidgetType.TEXT, field=field, dependency=dependency, **attrs
    )


class TestDeclaredState:
    """Widgets without a dependency keep their declared state."""

    @pytest.mark.unit
    @pytest.mark.parametrize("hidden", [True, False])
    @pytest.mark.parametrize("disabled", [True, False])
    @pytest.mark.parametrize("required", [True, False])
    def test_no_dependency(self, hidden, disabled, required):
        """State mirrors the declared flags for any form values."""
        widget = _widget(hidden=hidden, disabled=disabled, required=required)
        expected = ResolvedState(
            visible=not hidden, enabled=not disabled, required=required
        )
        for values in ({}, {"parent": "x"}, {"child": "y", "other": [1, 2]}):
            assert resolve_widget(widget, values) == expected

    @pytest.mark.unit
    def test_to_dict(self):
        """ResolvedState serializes to a plain dict."""
        state = ResolvedState(visible=True, enabled=False, required=True)
        assert state.to_dict() == {"visible": True, "enabled": False, "required": True}

    @pytest.mark.unit
    def test_required_rule_is_declared_required(self):
        """A required validation rule makes the widget required before any action."""
        widget = _widget(validations=[Validation(type="required")])
        assert resolve_widget(widget, {}).required is True

    @pytest.mark.unit
    def test_required_rule_with_unmet_require(self):
        """require with an unmet condition is optional even with a required rule."""
        widget = _widget(
            "equals", "yes", action="require", validations=[Validation(type="required")]
        )
        assert resolve_widget(widget, {"parent": "no"}).required is False
        assert resolve_widget(widget, {"parent": "yes"}).required is True


class TestStringify:
    """Tests for the loose string form used by equals."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [
            (UNSET, "undefined"),
            (None, "null"),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (3.0, "3"),
            (2.5, "2.5"),
            (float("nan"), "NaN"),
            ("email", "email"),
            (["a", "b"], "a,b"),
            (["a", None], "a,"),
            ({"k": 1}, "[object Object]"),
        ],
    )
    def test_values(self, value, expected):
        assert stringify(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [
            (2.0, "2"),
            (0.5, "0.5"),
            (123.45, "123.45"),
            (1e16, "10000000000000000"),
            (1e21, "1e+21"),
            (-1e21, "-1e+21"),
            (1.5e300, "1.5e+300"),
            (0.000001, "0.000001"),
            (0.0001234, "0.0001234"),
            (1e-7, "1e-7"),
            (1.5e-7, "1.5e-7"),
            (-0.0, "0"),
            (float("inf"), "Infinity"),
            (float("-inf"), "-Infinity"),
        ],
    )
    def test_float_formatting(self, value, expected):
        """Floats use plain notation between 1e-6 and 1e21, exponents outside."""
        assert stringify(value) == expected


class TestEquals:
    """Tests for equals and notEquals."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "parent_value,target,met",
        [
            ("email", "email", True),
            ("phone", "email", False),
            (3, "3", True),
            (3.0, "3", True),
            (True, "true", True),
            (None, "null", True),
            ("", "", True),
            (["a", "b"], "a,b", True),
        ],
    )
    def test_string_coercion(self, parent_value, target, met):
        """Both sides are compared as strings."""
        widget = _widget("equals", target)
        assert resolve_widget(widget, {"parent": parent_value}).visible is met

    @pytest.mark.unit
    def test_unset_parent_never_equals_value(self):
        """A missing parent field is not equal to any real value."""
        widget = _widget("equals", "email")
        assert resolve_widget(widget, {}).visible is False

    @pytest.mark.unit
    @pytest.mark.parametrize("parent_value", [UNSET, "x", "email", 0, ["email"]])
    def test_not_equals_is_negation(self, parent_value):
        """notEquals is always the opposite of equals."""
        eq = _widget("equals", "email").dependency
        ne = _widget("notEquals", "email").dependency
        assert evaluate_condition(eq, parent_value) is not evaluate_condition(
            ne, parent_value
        )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "parent_value,met",
        [
            ("a,b", True),
            (["a", "b"], True),
            ("a", False),
            (["b", "a"], False),
            (UNSET, False),
        ],
    )
    def test_list_target_joined(self, parent_value, met):
        """A list target compares as its comma-joined string."""
        eq = _widget("equals", ["a", "b"])
        ne = _widget("notEquals", ["a", "b"])
        assert resolve_widget(eq, {"parent": parent_value}).visible is met
        assert resolve_widget(ne, {"parent": parent_value}).visible is not met


class TestContains:
    """Tests for contains and notContains branching."""

    @pytest.mark.unit
    def test_list_target_membership(self):
        """List targets test exact membership."""
        dep = _widget("contains", ["urgent", "vip"]).dependency
        assert evaluate_condition(dep, "vip") is True
        assert evaluate_condition(dep, "standard") is False
        assert evaluate_condition(dep, "vi") is False

    @pytest.mark.unit
    def test_list_target_no_coercion(self):
        """Membership does not coerce types."""
        dep = _widget("contains", ["3"]).dependency
        assert evaluate_condition(dep, 3) is False
        assert evaluate_condition(dep, "3") is True

    @pytest.mark.unit
    def test_list_target_non_string_parent_resolved(self):
        """A number parent is never a member of a list of strings."""
        contains = _widget("contains", ["3"], widget_id="a")
        not_contains = _widget("notContains", ["3"], widget_id="b")
        resolved = resolve([contains, not_contains], {"parent": 3})
        assert resolved["a"].visible is False
        assert resolved["b"].visible is True

    @pytest.mark.unit
    def test_string_target_substring(self):
        """String target against a string parent is a substring test."""
        dep = _widget("contains", "ur").dependency
        assert evaluate_condition(dep, "urgent") is True
        assert evaluate_condition(dep, "vip") is False

    @pytest.mark.unit
    @pytest.mark.parametrize("parent_value", [UNSET, None, 5, ["ur"], True])
    def test_string_target_non_string_parent(self, parent_value):
        """Neither branch applies, so both contains and notContains are false."""
        contains = _widget("contains", "ur").dependency
        not_contains = _widget("notContains", "ur").dependency
        assert evaluate_condition(contains, parent_value) is False
        assert evaluate_condition(not_contains, parent_value) is False

    @pytest.mark.unit
    def test_not_contains_list(self):
        """notContains negates membership for list targets."""
        dep = _widget("notContains", ["urgent", "vip"]).dependency
        assert evaluate_condition(dep, "standard") is True
        assert evaluate_condition(dep, "vip") is False
        assert evaluate_condition(dep, UNSET) is True

    @pytest.mark.unit
    def test_not_contains_substring(self):
        """notContains negates substring for string targets."""
        dep = _widget("notContains", "ur").dependency
        assert evaluate_condition(dep, "vip") is True
        assert evaluate_condition(dep, "urgent") is False

    @pytest.mark.unit
    def test_missing_target(self):
        """contains without a value never matches."""
        dep = _widget("contains", None).dependency
        assert evaluate_condition(dep, "anything") is False


class TestEmptiness:
    """Tests for isEmpty and isNotEmpty."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value", [UNSET, None, "", [], False, 0, 0.0, float("nan"), ()]
    )
    def test_empty_values(self, value):
        assert is_empty(value) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["x", " ", [0], True, 1, -1.5, {}, {"a": 1}])
    def test_non_empty_values(self, value):
        assert is_empty(value) is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value", [UNSET, None, "", "x", [], ["a"], 0, 3, False, True, math.inf]
    )
    def test_exact_complements(self, value):
        """isEmpty and isNotEmpty never agree."""
        empty = _widget("isEmpty").dependency
        not_empty = _widget("isNotEmpty").dependency
        assert evaluate_condition(empty, value) is not evaluate_condition(
            not_empty, value
        )

    @pytest.mark.unit
    def test_missing_parent_is_empty(self):
        """An unset parent makes isEmpty true."""
        widget = _widget("isEmpty", action="show")
        assert resolve_widget(widget, {}).visible is True


class TestActions:
    """Each action sets exactly one attribute."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "action,attribute,when_met",
        [
            ("show", "visible", True),
            ("hide", "visible", False),
            ("enable", "enabled", True),
            ("disable", "enabled", False),
            ("require", "required", True),
            ("optional", "required", False),
        ],
    )
    def test_action(self, action, attribute, when_met):
        widget = _widget("equals", "yes", action=action)
        met = resolve_widget(widget, {"parent": "yes"})
        unmet = resolve_widget(widget, {"parent": "no"})
        assert getattr(met, attribute) is when_met
        assert getattr(unmet, attribute) is (not when_met)

        # Other attributes stay at their declared values
        declared = ResolvedState(visible=True, enabled=True, required=False)
        for other in {"visible", "enabled", "required"} - {attribute}:
            assert getattr(met, other) == getattr(declared, other)
            assert getattr(unmet, other) == getattr(declared, other)

    @pytest.mark.unit
    def test_require_unmet_never_required(self):
        """A declared-required widget with require and unmet condition is optional."""
        widget = _widget("equals", "yes", action="require", required=True)
        assert resolve_widget(widget, {"parent": "no"}).required is False

    @pytest.mark.unit
    def test_hide_met_not_visible(self):
        """hide with a met condition hides the widget."""
        widget = _widget("equals", "yes", action="hide")
        assert resolve_widget(widget, {"parent": "yes"}).visible is False

    @pytest.mark.unit
    def test_show_overrides_declared_hidden(self):
        """show takes precedence over the declared hidden flag."""
        widget = _widget("equals", "yes", action="show", hidden=True)
        assert resolve_widget(widget, {"parent": "yes"}).visible is True


class TestResolve:
    """Tests for whole-screen resolution."""

    @pytest.mark.unit
    def test_idempotent(self, sample_screen):
        """Same inputs give equal outputs and inputs are not modified."""
        values = {"contactMethod": "email", "tags": ["vip"], "qty": "3"}
        snapshot = dict(values)
        first = resolve(sample_screen, values)
        second = resolve(sample_screen, values)
        assert first == second
        assert values == snapshot

    @pytest.mark.unit
    def test_single_level(self):
        """A child of a hidden parent still resolves from the raw parent value."""
        parent = _widget(
            "equals", "on", action="show", parent="root", widget_id="p", field="p"
        )
        child = _widget("equals", "x", action="show", parent="p", widget_id="c", field="c")
        states = resolve([parent, child], {"root": "off", "p": "x"})
        assert states["p"].visible is False
        assert states["c"].visible is True

    @pytest.mark.unit
    def test_self_reference_ignored(self):
        """A widget depending on its own field keeps its declared state."""
        widget = _widget("isEmpty", action="hide", parent="child")
        assert resolve_widget(widget, {}).visible is True

    @pytest.mark.unit
    def test_accepts_widget_list(self, sample_screen):
        """Lists of widgets and whole configs resolve the same."""
        values = {"contactMethod": "phone"}
        assert resolve(list(iter_widgets(sample_screen)), values) == resolve(
            sample_screen, values
        )


class TestDependencyIndex:
    """Tests for incremental re-resolution."""

    @pytest.mark.unit
    def test_dependents(self, sample_screen):
        index = DependencyIndex(iter_widgets(sample_screen))
        ids = [w.id for w in index.dependents("contactMethod")]
        assert ids == ["w-email", "w-phone"]
        assert index.dependents("unknown") == []
        assert index.parent_fields == {"contactMethod", "tags", "qty"}

    @pytest.mark.unit
    def test_update_matches_full_resolve(self, sample_screen):
        """Incremental updates equal a full resolve."""
        widgets = list(iter_widgets(sample_screen))
        index = DependencyIndex(widgets)
        values: dict = {}
        resolved = resolve(widgets, values)

        for field_name, value in [
            ("contactMethod", "email"),
            ("tags", "vip"),
            ("qty", "3"),
            ("contactMethod", "phone"),
            ("qty", ""),
        ]:
            values[field_name] = value
            resolved = index.update(resolved, values, field_name)
            assert resolved == resolve(widgets, values)


class TestScenarios:
    """End-to-end behaviour on small screens."""

    @pytest.mark.unit
    def test_contact_method_shows_email(self, sample_screen):
        """Email shows only when contactMethod is "email"."""
        assert resolve(sample_screen, {"contactMethod": "email"})["w-email"].visible
        assert not resolve(sample_screen, {"contactMethod": "phone"})["w-email"].visible
        assert not resolve(sample_screen, {})["w-email"].visible

    @pytest.mark.unit
    def test_tags_membership_enables(self, sample_screen):
        """A scalar parent that is a member of the list enables the widget."""
        states = resolve(sample_screen, {"tags": "vip"})
        assert states["w-escalation"].enabled is True
        assert resolve(sample_screen, {})["w-escalation"].enabled is False

    @pytest.mark.unit
    def test_qty_not_empty_requires(self, sample_screen):
        """qtyReason is required only once qty has a value."""
        assert resolve(sample_screen, {"qty": ""})["w-qty-reason"].required is False
        assert resolve(sample_screen, {"qty": "3"})["w-qty-reason"].required is True

    @pytest.mark.unit
    def test_standalone_scenarios(self):
        """The same rules hold for free-standing widgets."""
        b = _widget("equals", "email", parent="contactMethod", widget_id="B", field="b")
        c = _widget(
            "contains", ["urgent", "vip"], action="enable", parent="tags",
            widget_id="C", field="c",
        )
        d = _widget("isNotEmpty", action="require", parent="qty", widget_id="D", field="d")
        assert resolve([b], {"contactMethod": "email"})["B"].visible is True
        assert resolve([b], {"contactMethod": "phone"})["B"].visible is False
        assert resolve([b], {})["B"].visible is False
        assert resolve([c], {"tags": "vip"})["C"].enabled is True
        assert resolve([d], {"qty": ""})["D"].required is False
        assert resolve([d], {"qty": "3"})["D"].required is True
