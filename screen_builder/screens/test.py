"""Tests for the screen manager."""

import pytest

from screen_builder.schema import ScreenConfig

from .lib import (
    DuplicateScreenKeyError,
    InvalidScreenConfigError,
    ScreenManager,
    ScreenNotFoundError,
)


class TestCreate:
    """Tests for creating screens."""

    @pytest.mark.unit
    def test_create_and_fetch(self, screen_manager, sample_screen_dict):
        record = screen_manager.create_screen(
            screen_key="contact",
            screen_name="Contact details",
            config=sample_screen_dict,
            description="Applicant contact",
        )
        assert screen_manager.get_screen(record.id).screen_key == "contact"
        assert screen_manager.get_screen_by_key("contact").id == record.id
        config = screen_manager.get_screen_config(record.id)
        assert isinstance(config, ScreenConfig)
        assert config.accordions[0].id == "acc-applicant"

    @pytest.mark.unit
    def test_accepts_model(self, screen_manager, sample_screen):
        record = screen_manager.create_screen("contact", "Contact", sample_screen)
        assert record.config["accordions"][0]["title"] == "Applicant"

    @pytest.mark.unit
    def test_invalid_config_not_saved(self, screen_manager):
        bad = {"accordions": [{"title": "A"}]}
        with pytest.raises(InvalidScreenConfigError) as exc_info:
            screen_manager.create_screen("bad", "Bad", bad)
        assert exc_info.value.errors == [
            "Accordion at index 0 is missing an id",
            "Accordion at index 0 is missing sections array",
        ]
        assert str(exc_info.value).startswith("Invalid screen configuration: ")
        assert screen_manager.list_screens() == []

    @pytest.mark.unit
    def test_model_errors_reported(self, screen_manager):
        """Structurally fine documents can still fail the typed model."""
        doc = {
            "accordions": [
                {
                    "id": "a",
                    "title": "A",
                    "sections": [
                        {
                            "id": "s",
                            "title": "S",
                            "columns": 1,
                            "widgets": [{"id": "w", "type": "hologram", "field": "f"}],
                        }
                    ],
                }
            ]
        }
        with pytest.raises(InvalidScreenConfigError):
            screen_manager.create_screen("bad", "Bad", doc)

    @pytest.mark.unit
    def test_duplicate_key(self, screen_manager, sample_screen_dict):
        screen_manager.create_screen("contact", "Contact", sample_screen_dict)
        with pytest.raises(DuplicateScreenKeyError, match="contact"):
            screen_manager.create_screen("contact", "Again", sample_screen_dict)

    @pytest.mark.unit
    def test_missing_key(self, screen_manager, sample_screen_dict):
        with pytest.raises(ValueError):
            screen_manager.create_screen("", "Contact", sample_screen_dict)

    @pytest.mark.unit
    def test_label_requirement(self, tmp_path):
        doc = {
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
        manager = ScreenManager(db_path=tmp_path / "strict.db", require_label=True)
        try:
            with pytest.raises(InvalidScreenConfigError, match="missing a label"):
                manager.create_screen("k", "n", doc)
        finally:
            manager.close()

    @pytest.mark.unit
    def test_label_requirement_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCREEN_REQUIRE_WIDGET_LABEL", "true")
        manager = ScreenManager(db_path=tmp_path / "env.db")
        assert manager.require_label is True
        manager.close()


class TestQueries:
    """Tests for listing and lookups."""

    @pytest.mark.unit
    def test_list_ordered_by_name(self, screen_manager, sample_screen_dict):
        screen_manager.create_screen("z", "Travel", sample_screen_dict)
        screen_manager.create_screen("y", "Home", sample_screen_dict)
        assert [r.screen_name for r in screen_manager.list_screens()] == ["Home", "Travel"]

    @pytest.mark.unit
    def test_not_found(self, screen_manager):
        with pytest.raises(ScreenNotFoundError):
            screen_manager.get_screen("missing")
        with pytest.raises(ScreenNotFoundError):
            screen_manager.get_screen_by_key("missing")


class TestUpdateDelete:
    """Tests for partial updates and deletion."""

    @pytest.mark.unit
    def test_partial_update(self, screen_manager, sample_screen_dict):
        record = screen_manager.create_screen(
            "contact", "Contact", sample_screen_dict, description="v1"
        )
        updated = screen_manager.update_screen(record.id, screen_name="Contact v2")
        assert updated.screen_name == "Contact v2"
        assert updated.description == "v1"
        assert updated.screen_key == "contact"
        assert screen_manager.get_screen(record.id).screen_name == "Contact v2"

    @pytest.mark.unit
    def test_deactivate(self, screen_manager, sample_screen_dict):
        record = screen_manager.create_screen("contact", "Contact", sample_screen_dict)
        screen_manager.update_screen(record.id, is_active=False)
        assert screen_manager.list_screens(active_only=True) == []

    @pytest.mark.unit
    def test_invalid_update_keeps_stored_config(self, screen_manager, sample_screen_dict):
        record = screen_manager.create_screen("contact", "Contact", sample_screen_dict)
        with pytest.raises(InvalidScreenConfigError):
            screen_manager.update_screen(record.id, config={"accordions": "nope"})
        stored = screen_manager.get_screen(record.id)
        assert stored.config["accordions"][0]["id"] == "acc-applicant"

    @pytest.mark.unit
    def test_update_to_taken_key(self, screen_manager, sample_screen_dict):
        screen_manager.create_screen("a", "A", sample_screen_dict)
        record = screen_manager.create_screen("b", "B", sample_screen_dict)
        with pytest.raises(DuplicateScreenKeyError):
            screen_manager.update_screen(record.id, screen_key="a")

    @pytest.mark.unit
    def test_update_missing(self, screen_manager):
        with pytest.raises(ScreenNotFoundError):
            screen_manager.update_screen("missing", screen_name="x")

    @pytest.mark.unit
    def test_delete(self, screen_manager, sample_screen_dict):
        record = screen_manager.create_screen("contact", "Contact", sample_screen_dict)
        screen_manager.delete_screen(record.id)
        with pytest.raises(ScreenNotFoundError):
            screen_manager.get_screen(record.id)
        with pytest.raises(ScreenNotFoundError):
            screen_manager.delete_screen(record.id)
