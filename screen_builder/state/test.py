"""Unit tests for the form state store."""

import pytest

from screen_builder.dependency import UNSET, resolve
from screen_builder.schema import SelectOption, Widget, WidgetType
from screen_builder.state import FormChange, FormState, UnknownFieldError


class TestSeeding:
    """Tests for initial values."""

    @pytest.mark.unit
    def test_seeded_from_defaults(self, sample_screen):
        """defaultValue seeds the store."""
        state = FormState(sample_screen)
        assert state.get("qty") == ""
        assert state.get("email") is UNSET

    @pytest.mark.unit
    def test_initial_values_overlay_defaults(self, sample_screen):
        """External values win over defaults."""
        state = FormState(sample_screen, initial_values={"qty": "4", "email": "a@b"})
        assert state.get("qty") == "4"
        assert state.get("email") == "a@b"

    @pytest.mark.unit
    def test_undeclared_initial_values_ignored(self, sample_screen):
        """Only declared fields are seeded."""
        state = FormState(sample_screen, initial_values={"ghost": 1})
        assert "ghost" not in state.values

    @pytest.mark.unit
    def test_display_widgets_have_no_field(self, sample_screen):
        """Headings do not contribute fields."""
        state = FormState(sample_screen)
        assert "introHeading" not in state.fields
        assert "contactMethod" in state.fields

    @pytest.mark.unit
    def test_default_values_are_copied(self):
        """Mutable defaults are not shared with the schema."""
        widget = Widget(
            id="w", type=WidgetType.MULTISELECT, field="tags", default_value=["a"]
        )
        state = FormState([widget])
        state.get("tags").append("b")
        assert widget.default_value == ["a"]

    @pytest.mark.unit
    def test_initial_resolution(self, sample_screen):
        """Resolved state is computed for the seeded values."""
        state = FormState(sample_screen, initial_values={"contactMethod": "phone"})
        assert state.state_of("w-phone").visible is True
        assert state.state_of("w-email").visible is False


class TestSet:
    """Tests for writing values."""

    @pytest.mark.unit
    def test_set_returns_snapshot(self, sample_screen):
        """set returns the values and resolved state after the write."""
        state = FormState(sample_screen)
        snapshot = state.set("contactMethod", "email")
        assert snapshot.values["contactMethod"] == "email"
        assert snapshot.resolved["w-email"].visible is True

    @pytest.mark.unit
    def test_snapshot_is_read_only(self, sample_screen):
        """Snapshots cannot be mutated."""
        snapshot = FormState(sample_screen).set("contactMethod", "email")
        with pytest.raises(TypeError):
            snapshot.values["contactMethod"] = "phone"

    @pytest.mark.unit
    def test_snapshots_are_independent(self, sample_screen):
        """Earlier snapshots keep their values."""
        state = FormState(sample_screen)
        first = state.set("contactMethod", "email")
        state.set("contactMethod", "phone")
        assert first.values["contactMethod"] == "email"

    @pytest.mark.unit
    def test_unknown_field_rejected(self, sample_screen):
        """Writing an undeclared field raises."""
        state = FormState(sample_screen)
        with pytest.raises(UnknownFieldError) as exc_info:
            state.set("ghost", 1)
        assert exc_info.value.field == "ghost"
        assert isinstance(exc_info.value, KeyError)

    @pytest.mark.unit
    def test_resolved_matches_full_resolve(self, sample_screen):
        """The store's resolved map always equals a fresh resolve."""
        state = FormState(sample_screen)
        for field_name, value in [
            ("contactMethod", "email"),
            ("tags", ["vip"]),
            ("tags", "vip"),
            ("qty", "7"),
        ]:
            state.set(field_name, value)
            assert state.resolved == resolve(sample_screen, state.values)

    @pytest.mark.unit
    def test_reset(self, sample_screen):
        """reset reseeds values and resolution."""
        state = FormState(sample_screen)
        state.set("contactMethod", "email")
        snapshot = state.reset({"contactMethod": "phone"})
        assert snapshot.values == {"qty": "", "contactMethod": "phone"}
        assert state.state_of("w-email").visible is False

    @pytest.mark.unit
    def test_state_of_unknown_widget(self, sample_screen):
        with pytest.raises(KeyError):
            FormState(sample_screen).state_of("missing")


class TestSubscriptions:
    """Tests for change notification."""

    @pytest.mark.unit
    def test_listener_called_after_set(self, sample_screen):
        """Listeners receive the change with the updated snapshot."""
        state = FormState(sample_screen)
        changes: list[FormChange] = []
        state.subscribe(changes.append)

        state.set("contactMethod", "email")

        assert len(changes) == 1
        change = changes[0]
        assert change.field == "contactMethod"
        assert change.value == "email"
        assert change.previous is UNSET
        assert change.snapshot.resolved["w-email"].visible is True

    @pytest.mark.unit
    def test_unsubscribe(self, sample_screen):
        """Unsubscribed listeners are not called."""
        state = FormState(sample_screen)
        calls: list[str] = []
        unsubscribe = state.subscribe(lambda c: calls.append(c.field))
        state.set("qty", "1")
        unsubscribe()
        unsubscribe()
        state.set("qty", "2")
        assert calls == ["qty"]

    @pytest.mark.unit
    def test_nested_set_is_serialized(self, sample_screen):
        """A write from a listener is applied after the current dispatch."""
        state = FormState(sample_screen)
        seen: list[tuple[str, dict]] = []

        def listener(change: FormChange) -> None:
            seen.append((change.field, dict(change.snapshot.values)))
            if change.field == "contactMethod":
                state.set("email", "")

        state.subscribe(listener)
        state.set("contactMethod", "email")

        assert [field for field, _ in seen] == ["contactMethod", "email"]
        # First notification saw only the first write
        assert "email" not in seen[0][1]
        assert seen[1][1]["email"] == ""


class TestBindingResults:
    """Tests for fetched options and fetch errors."""

    @pytest.mark.unit
    def test_option_override(self, sample_screen):
        """Fetched options replace declared ones."""
        state = FormState(sample_screen)
        widget = state.widget_for("tags")
        assert [o.value for o in state.options_for(widget)] == [
            "urgent",
            "vip",
            "standard",
        ]
        state.set_options(widget.id, [SelectOption(value="gold", label="Gold")])
        assert [o.value for o in state.options_for(widget)] == ["gold"]

    @pytest.mark.unit
    def test_fetch_error_does_not_affect_resolution(self, sample_screen):
        """Fetch errors are tracked apart from values."""
        state = FormState(sample_screen)
        before = state.resolved
        state.set_fetch_error("w-tags", "HTTP 500")
        assert state.fetch_error("w-tags") == "HTTP 500"
        assert state.resolved == before
        assert "w-tags" not in state.values

        state.clear_fetch_error("w-tags")
        assert state.fetch_errors == {}
