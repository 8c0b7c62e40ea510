"""Data models for screen persistence."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4


@dataclass
class ScreenRecord:
    """A persisted screen configuration.

    Attributes:
        id: Unique identifier for this record.
        screen_key: Stable business key, unique across records.
        screen_name: Display name.
        config: The screen configuration document (camelCase JSON form).
        description: Optional description.
        is_active: Whether the screen is offered to users.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str
    screen_key: str
    screen_name: str
    config: dict[str, Any]
    description: str | None = None
    is_active: bool = True

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(
        cls,
        screen_key: str,
        screen_name: str,
        config: dict[str, Any],
        **kwargs: Any,
    ) -> "ScreenRecord":
        """Factory method to create a new record with generated ID."""
        return cls(
            id=str(uuid4()),
            screen_key=screen_key,
            screen_name=screen_name,
            config=config,
            **kwargs,
        )

    def touch(self) -> None:
        """Update updated_at timestamp."""
        self.updated_at = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        """Wire form with camelCase keys."""
        data: dict[str, Any] = {
            "id": self.id,
            "screenKey": self.screen_key,
            "screenName": self.screen_name,
            "config": self.config,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.description is not None:
            data["description"] = self.description
        return data
