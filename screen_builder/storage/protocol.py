"""Storage protocol for screen persistence.

Defines the interface that all storage backends must implement.
"""

from typing import Protocol

from .models import ScreenRecord


class ScreenStorage(Protocol):
    """Protocol defining the storage interface for screen configurations.

    Backends must reject a second record with an existing ``screen_key``
    by raising ``sqlite3.IntegrityError`` or a subclass of it.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Initialize storage (create tables, indexes, etc.)."""
        ...

    def close(self) -> None:
        """Close storage connections and clean up resources."""
        ...

    # =========================================================================
    # Screen Operations
    # =========================================================================

    def list_screens(self, active_only: bool = False) -> list[ScreenRecord]:
        """List screens ordered by name.

        Args:
            active_only: Only return screens with is_active set.
        """
        ...

    def get_screen(self, screen_id: str) -> ScreenRecord | None:
        """Get a screen by ID.

        Returns:
            Record if found, None otherwise.
        """
        ...

    def get_screen_by_key(self, screen_key: str) -> ScreenRecord | None:
        """Get a screen by its business key."""
        ...

    def create_screen(self, record: ScreenRecord) -> ScreenRecord:
        """Insert a new screen record."""
        ...

    def update_screen(self, record: ScreenRecord) -> ScreenRecord:
        """Overwrite an existing screen record."""
        ...

    def delete_screen(self, screen_id: str) -> bool:
        """Delete a screen.

        Returns:
            True if a record was deleted.
        """
        ...
