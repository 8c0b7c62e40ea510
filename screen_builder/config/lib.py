"""Centralized environment configuration management for screen-builder.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from screen_builder.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> port = get_environment(EnvVar.MCP_PORT)  # Returns int
    >>> db_path = get_environment(EnvVar.SCREEN_DB_PATH)  # Returns Path
    >>>
    >>> # Override at runtime
    >>> port = get_environment(EnvVar.MCP_PORT, override=9000)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, overload

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "MCP_PORT").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by screen-builder.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - storage: Screen configuration persistence
        - validation: Schema validation switches
        - binding: External data-fetch (API binding) settings
        - service: Server bind address, port, and logging
    """

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    SCREEN_DB_PATH = EnvConfig(
        name="SCREEN_DB_PATH",
        default=Path("data/screens/screens.db"),
        var_type=Path,
        description="SQLite database file holding screen configurations",
        category="storage",
    )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------
    SCREEN_REQUIRE_WIDGET_LABEL = EnvConfig(
        name="SCREEN_REQUIRE_WIDGET_LABEL",
        default=False,
        var_type=bool,
        description="Reject widgets without a label when saving a screen",
        category="validation",
    )

    # -------------------------------------------------------------------------
    # API Binding
    # -------------------------------------------------------------------------
    API_BINDING_TIMEOUT = EnvConfig(
        name="API_BINDING_TIMEOUT",
        default=10,
        var_type=int,
        description="Timeout in seconds for widget API binding requests",
        category="binding",
    )

    # -------------------------------------------------------------------------
    # Service Configuration
    # -------------------------------------------------------------------------
    SCREEN_LOG_LEVEL = EnvConfig(
        name="SCREEN_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level for the CLI and server (DEBUG, INFO, WARNING)",
        category="service",
    )
    MCP_HOST = EnvConfig(
        name="MCP_HOST",
        default="0.0.0.0",
        var_type=str,
        description="MCP server bind address",
        category="service",
    )
    MCP_PORT = EnvConfig(
        name="MCP_PORT",
        default=18080,
        var_type=int,
        description="MCP server port (avoids 8080)",
        category="service",
    )
    MCP_PATH = EnvConfig(
        name="MCP_PATH",
        default="/mcp",
        var_type=str,
        description="URL path of the MCP HTTP transport",
        category="service",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    if var_type is Path:
        return Path(value)

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: Path) -> Path: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int, bool, or Path).

    Example:
        >>> get_environment(EnvVar.MCP_PORT)
        18080
        >>> get_environment(EnvVar.MCP_PORT, override=9000)
        9000
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)
    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_db_path(override: Path | str | None = None) -> Path:
    """Get the screen configuration database path.

    Resolution: override > SCREEN_DB_PATH > data/screens/screens.db
    """
    if override is not None:
        return Path(override)
    return get_environment(EnvVar.SCREEN_DB_PATH)


def get_log_level(override: str | None = None) -> str:
    """Get the configured log level name, upper-cased."""
    return str(get_environment(EnvVar.SCREEN_LOG_LEVEL, override=override)).upper()


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (storage, validation, binding, service).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


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
