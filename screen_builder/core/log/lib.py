"""Core logging implementation for screen-builder."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _coerce_level(level: int | str) -> int:
    """Turn a level name such as "debug" into its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level, numeric or by name ("INFO", "debug").
        stream: Output stream.
    """
    logging.basicConfig(
        level=_coerce_level(level),
        format=LOG_FORMAT,
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "screen-builder")
