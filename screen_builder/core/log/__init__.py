"""Logging micro API for screen-builder."""

from .lib import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
