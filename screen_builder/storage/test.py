"""Tests for the SQLite screen storage backend."""

import sqlite3

import pytest

from .models import ScreenRecord
from .sqlite import SQLiteStorage

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage(tmp_path):
    """Create an initialized storage in a temporary directory."""
    store = SQLiteStorage(tmp_path / "nested" / "screens.db")
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def record():
    return ScreenRecord.create(
        screen_key="motor-quote",
        screen_name="Motor quote",
        config={"accordions": []},
        description="Private motor",
    )


# =============================================================================
# Tests
# =============================================================================


class TestScreenRecord:
    """Tests for the record model."""

    @pytest.mark.unit
    def test_create_generates_id(self, record):
        other = ScreenRecord.create("k", "n", {"accordions": []})
        assert record.id != other.id
        assert record.is_active is True

    @pytest.mark.unit
    def test_to_dict(self, record):
        data = record.to_dict()
        assert data["screenKey"] == "motor-quote"
        assert data["screenName"] == "Motor quote"
        assert data["isActive"] is True
        assert data["description"] == "Private motor"
        assert "createdAt" in data and "updatedAt" in data

    @pytest.mark.unit
    def test_to_dict_omits_missing_description(self):
        data = ScreenRecord.create("k", "n", {}).to_dict()
        assert "description" not in data


class TestSQLiteStorage:
    """Tests for persistence round trips."""

    @pytest.mark.unit
    def test_uninitialized(self, tmp_path):
        with pytest.raises(RuntimeError, match="not initialized"):
            SQLiteStorage(tmp_path / "x.db").list_screens()

    @pytest.mark.unit
    def test_create_and_get(self, storage, record):
        storage.create_screen(record)
        loaded = storage.get_screen(record.id)
        assert loaded == record
        assert storage.get_screen_by_key("motor-quote").id == record.id
        assert storage.get_screen("missing") is None

    @pytest.mark.unit
    def test_duplicate_key_rejected(self, storage, record):
        storage.create_screen(record)
        with pytest.raises(sqlite3.IntegrityError):
            storage.create_screen(ScreenRecord.create("motor-quote", "Copy", {}))

    @pytest.mark.unit
    def test_list_ordered_by_name(self, storage):
        for key, name in [("b", "Home"), ("a", "Travel"), ("c", "Contents")]:
            storage.create_screen(ScreenRecord.create(key, name, {}))
        assert [r.screen_name for r in storage.list_screens()] == [
            "Contents",
            "Home",
            "Travel",
        ]

    @pytest.mark.unit
    def test_list_active_only(self, storage):
        storage.create_screen(ScreenRecord.create("a", "A", {}))
        storage.create_screen(ScreenRecord.create("b", "B", {}, is_active=False))
        assert [r.screen_key for r in storage.list_screens(active_only=True)] == ["a"]

    @pytest.mark.unit
    def test_update(self, storage, record):
        storage.create_screen(record)
        created_at = record.updated_at
        record.screen_name = "Motor quote v2"
        record.config = {"accordions": [], "metadata": {"v": 2}}
        storage.update_screen(record)

        loaded = storage.get_screen(record.id)
        assert loaded.screen_name == "Motor quote v2"
        assert loaded.config["metadata"] == {"v": 2}
        assert loaded.updated_at >= created_at

    @pytest.mark.unit
    def test_delete(self, storage, record):
        storage.create_screen(record)
        assert storage.delete_screen(record.id) is True
        assert storage.delete_screen(record.id) is False
        assert storage.get_screen(record.id) is None

    @pytest.mark.unit
    def test_persists_across_connections(self, tmp_path, record):
        path = tmp_path / "screens.db"
        first = SQLiteStorage(path)
        first.initialize()
        first.create_screen(record)
        first.close()

        second = SQLiteStorage(path)
        second.initialize()
        assert second.get_screen_by_key("motor-quote") == record
        second.close()
