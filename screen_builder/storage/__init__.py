"""Storage backends for screen configurations.

Available backends:
- SQLiteStorage: File-based SQLite database
"""

from .models import ScreenRecord
from .protocol import ScreenStorage
from .sqlite import SQLiteStorage

__all__ = [
    "ScreenRecord",
    "ScreenStorage",
    "SQLiteStorage",
]
