"""Centralized configuration management for screen-builder.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from screen_builder.config import EnvVar, get_environment
    >>>
    >>> port = get_environment(EnvVar.MCP_PORT)  # Returns int: 18080
    >>> strict = get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL)  # bool
    >>>
    >>> # Override at runtime
    >>> port = get_environment(EnvVar.MCP_PORT, override=9000)

Environment Variable Categories:
    storage: Screen configuration database location
    validation: Schema validation switches
    binding: Widget API binding settings
    service: Server bind address, port, and log level
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Main interface
    get_db_path,
    get_environment,
    get_environment_info,
    get_log_level,
    # Introspection
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_db_path",
    "get_log_level",
    # Introspection
    "list_environment_variables",
]
