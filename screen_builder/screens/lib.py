"""Screen Manager for screen-builder.

Validates and persists screen configurations. Every create and update runs
the structural validator first; an invalid document never reaches storage.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from screen_builder.config import EnvVar, get_db_path, get_environment
from screen_builder.schema import ScreenConfig, dump_screen_config, load_screen_config
from screen_builder.storage import ScreenRecord, ScreenStorage, SQLiteStorage
from screen_builder.validation import validate_screen_config

logger = logging.getLogger(__name__)


class ScreenNotFoundError(LookupError):
    """No screen with the requested id or key."""

    def __init__(self, identifier: str):
        super().__init__(f"Screen not found: {identifier}")
        self.identifier = identifier


class DuplicateScreenKeyError(ValueError):
    """A screen with the same screen_key already exists."""

    def __init__(self, screen_key: str):
        super().__init__(f"Screen key already exists: {screen_key}")
        self.screen_key = screen_key


class InvalidScreenConfigError(ValueError):
    """A configuration failed validation and was not saved.

    Attributes:
        errors: Every validation message.
    """

    def __init__(self, errors: list[str]):
        super().__init__("Invalid screen configuration: " + ", ".join(errors))
        self.errors = list(errors)


def _pydantic_messages(error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return messages


class ScreenManager:
    """CRUD facade over screen storage.

    Example:
        >>> manager = ScreenManager()
        >>> record = manager.create_screen(
        ...     screen_key="motor-quote",
        ...     screen_name="Motor quote",
        ...     config={"accordions": []},
        ... )
        >>> manager.get_screen_config(record.id)

    Args:
        storage: Storage backend to use. If None, creates SQLiteStorage.
        db_path: Path to database file (only used if storage is None).
            Defaults to the SCREEN_DB_PATH env var.
        require_label: Reject widgets without a label. Defaults to the
            SCREEN_REQUIRE_WIDGET_LABEL env var.
    """

    def __init__(
        self,
        storage: ScreenStorage | None = None,
        db_path: Path | str | None = None,
        require_label: bool | None = None,
    ):
        if storage:
            self._storage = storage
        else:
            self._storage = SQLiteStorage(get_db_path(db_path))

        self.require_label = (
            require_label
            if require_label is not None
            else get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL)
        )
        self._storage.initialize()

    def close(self) -> None:
        """Close storage connections."""
        self._storage.close()

    # =========================================================================
    # Validation
    # =========================================================================

    def _validated(self, config: ScreenConfig | dict[str, Any]) -> dict[str, Any]:
        """Validate a configuration and return its canonical document.

        Raises:
            InvalidScreenConfigError: If the document fails validation.
        """
        result = validate_screen_config(config, require_label=self.require_label)
        if not result.valid:
            raise InvalidScreenConfigError(result.errors)
        if isinstance(config, ScreenConfig):
            return dump_screen_config(config)
        try:
            return dump_screen_config(load_screen_config(config))
        except ValidationError as e:
            raise InvalidScreenConfigError(_pydantic_messages(e)) from e

    # =========================================================================
    # Queries
    # =========================================================================

    def list_screens(self, active_only: bool = False) -> list[ScreenRecord]:
        """List screens ordered by name."""
        return self._storage.list_screens(active_only=active_only)

    def get_screen(self, screen_id: str) -> ScreenRecord:
        """Get a screen by ID.

        Raises:
            ScreenNotFoundError: If no screen has this ID.
        """
        record = self._storage.get_screen(screen_id)
        if record is None:
            raise ScreenNotFoundError(screen_id)
        return record

    def get_screen_by_key(self, screen_key: str) -> ScreenRecord:
        """Get a screen by its business key.

        Raises:
            ScreenNotFoundError: If no screen has this key.
        """
        record = self._storage.get_screen_by_key(screen_key)
        if record is None:
            raise ScreenNotFoundError(screen_key)
        return record

    def get_screen_config(self, screen_id: str) -> ScreenConfig:
        """Load a stored screen's configuration as a model."""
        return load_screen_config(self.get_screen(screen_id).config)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_screen(
        self,
        screen_key: str,
        screen_name: str,
        config: ScreenConfig | dict[str, Any],
        description: str | None = None,
        is_active: bool = True,
    ) -> ScreenRecord:
        """Validate and store a new screen.

        Raises:
            ValueError: If screen_key or screen_name is empty.
            InvalidScreenConfigError: If the configuration is invalid.
            DuplicateScreenKeyError: If the key is already taken.
        """
        if not screen_key or not screen_name:
            raise ValueError("screen_key and screen_name are required")

        record = ScreenRecord.create(
            screen_key=screen_key,
            screen_name=screen_name,
            config=self._validated(config),
            description=description,
            is_active=is_active,
        )
        try:
            self._storage.create_screen(record)
        except sqlite3.IntegrityError as e:
            raise DuplicateScreenKeyError(screen_key) from e

        logger.info(f"Created screen {record.screen_key} ({record.id})")
        return record

    def update_screen(
        self,
        screen_id: str,
        *,
        screen_key: str | None = None,
        screen_name: str | None = None,
        config: ScreenConfig | dict[str, Any] | None = None,
        description: str | None = None,
        is_active: bool | None = None,
    ) -> ScreenRecord:
        """Apply a partial update. Arguments left as None are unchanged.

        Raises:
            ScreenNotFoundError: If no screen has this ID.
            InvalidScreenConfigError: If the new configuration is invalid.
            DuplicateScreenKeyError: If the new key is already taken.
        """
        record = self.get_screen(screen_id)

        if config is not None:
            record.config = self._validated(config)
        if screen_key:
            record.screen_key = screen_key
        if screen_name:
            record.screen_name = screen_name
        if description is not None:
            record.description = description
        if is_active is not None:
            record.is_active = is_active

        try:
            self._storage.update_screen(record)
        except sqlite3.IntegrityError as e:
            raise DuplicateScreenKeyError(record.screen_key) from e

        logger.info(f"Updated screen {record.screen_key} ({record.id})")
        return record

    def delete_screen(self, screen_id: str) -> None:
        """Delete a screen.

        Raises:
            ScreenNotFoundError: If no screen has this ID.
        """
        if not self._storage.delete_screen(screen_id):
            raise ScreenNotFoundError(screen_id)
        logger.info(f"Deleted screen {screen_id}")
