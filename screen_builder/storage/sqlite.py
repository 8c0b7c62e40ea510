"""SQLite storage backend for screen configurations."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from .models import ScreenRecord

logger = logging.getLogger(__name__)

# SQL Schema
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS screens (
    id TEXT PRIMARY KEY,
    screen_key TEXT NOT NULL UNIQUE,
    screen_name TEXT NOT NULL,
    description TEXT,
    config TEXT NOT NULL,  -- JSON
    is_active INTEGER DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_screens_name ON screens(screen_name);
"""


class SQLiteStorage:
    """SQLite-based storage backend.

    Args:
        db_path: Path to SQLite database file. ":memory:" keeps everything
            in memory.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection, creating if needed."""
        if self._conn is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Initialize storage (create database, tables, directories)."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")

        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

        logger.info(f"Initialized SQLite storage at {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # =========================================================================
    # Screen Operations
    # =========================================================================

    def list_screens(self, active_only: bool = False) -> list[ScreenRecord]:
        """List screens ordered by name."""
        conn = self._get_conn()
        query = "SELECT * FROM screens"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY screen_name, created_at"
        return [self._row_to_record(row) for row in conn.execute(query).fetchall()]

    def get_screen(self, screen_id: str) -> ScreenRecord | None:
        """Get a screen by ID."""
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM screens WHERE id = ?", (screen_id,)).fetchone()
        if row:
            return self._row_to_record(row)
        return None

    def get_screen_by_key(self, screen_key: str) -> ScreenRecord | None:
        """Get a screen by its business key."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM screens WHERE screen_key = ?", (screen_key,)
        ).fetchone()
        if row:
            return self._row_to_record(row)
        return None

    def create_screen(self, record: ScreenRecord) -> ScreenRecord:
        """Insert a new screen.

        Raises:
            sqlite3.IntegrityError: If the screen_key is already taken.
        """
        conn = self._get_conn()
        with conn:
            conn.execute(
                """
                INSERT INTO screens (
                    id, screen_key, screen_name, description, config,
                    is_active, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.screen_key,
                    record.screen_name,
                    record.description,
                    json.dumps(record.config),
                    int(record.is_active),
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
        return record

    def update_screen(self, record: ScreenRecord) -> ScreenRecord:
        """Update an existing screen and bump its updated_at.

        Raises:
            sqlite3.IntegrityError: If the new screen_key is already taken.
        """
        conn = self._get_conn()
        record.touch()
        with conn:
            conn.execute(
                """
                UPDATE screens SET screen_key = ?, screen_name = ?, description = ?,
                                   config = ?, is_active = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    record.screen_key,
                    record.screen_name,
                    record.description,
                    json.dumps(record.config),
                    int(record.is_active),
                    record.updated_at.isoformat(),
                    record.id,
                ),
            )
        return record

    def delete_screen(self, screen_id: str) -> bool:
        """Delete a screen."""
        conn = self._get_conn()
        with conn:
            cursor = conn.execute("DELETE FROM screens WHERE id = ?", (screen_id,))
        return cursor.rowcount > 0

    # =========================================================================
    # Helpers
    # =========================================================================

    def _row_to_record(self, row: sqlite3.Row) -> ScreenRecord:
        """Convert database row to ScreenRecord object."""
        return ScreenRecord(
            id=row["id"],
            screen_key=row["screen_key"],
            screen_name=row["screen_name"],
            description=row["description"],
            config=json.loads(row["config"]),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
