"""FastMCP server instance for screen-builder.

Exposes screen configuration tooling to MCP clients:

    1. validate_screen / lint_screen: check a configuration before saving
    2. resolve_screen / preview_screen: see which widgets show for given values
    3. check_form_values: run field rules against filled-in values
    4. list/get/create/update/delete_screen: manage stored configurations

Usage:
    # STDIO mode
    python -m screen_builder.mcp.server

    # HTTP mode
    python -m screen_builder.mcp.server --transport http --port 18080

    # Via CLI
    python . serve --transport http
"""

import argparse
import logging
import sys
from dataclasses import asdict
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from screen_builder.config import EnvVar, get_environment, get_log_level
from screen_builder.core.log import setup_logging
from screen_builder.dependency import resolve
from screen_builder.render import preview_screen as _preview_screen
from screen_builder.rules import check_values
from screen_builder.schema import ScreenConfig, load_screen_config
from screen_builder.screens import ScreenManager
from screen_builder.validation import lint_screen_config, validate_screen_config

from .lib import SERVER_NAME, ServerConfig, TransportType, get_server_version

logger = logging.getLogger(__name__)

SERVER_INSTRUCTIONS = """\
## Screen Builder MCP Server

Validates, previews and stores insurance screen configurations: accordions of
sections of widgets, where widgets can depend on the values of other fields.

### Workflow
1. `validate_screen(config)` → structural errors (must be empty to save)
2. `lint_screen(config)` → authoring warnings (dangling dependencies etc.)
3. `preview_screen(config, values)` → text tree of what the user would see
4. `create_screen(screen_key, screen_name, config)` → persist

### Checking behaviour
- `resolve_screen(config, values)` - visible/enabled/required per widget
- `check_form_values(config, values)` - required and rule violations
"""

# =============================================================================
# Server Instance
# =============================================================================

mcp = FastMCP(
    name=SERVER_NAME,
    instructions=SERVER_INSTRUCTIONS,
)

_manager: ScreenManager | None = None


def get_manager() -> ScreenManager:
    """Get the screen manager, opening the database on first use."""
    global _manager
    if _manager is None:
        _manager = ScreenManager()
    return _manager


def set_manager(manager: ScreenManager | None) -> None:
    """Replace the screen manager used by the CRUD tools."""
    global _manager
    _manager = manager


def _load(config: dict[str, Any]) -> ScreenConfig:
    """Parse a configuration document, reporting model errors as ValueError."""
    try:
        return load_screen_config(config)
    except ValidationError as e:
        raise ValueError(f"Invalid screen configuration: {e}") from e


# =============================================================================
# Analysis Tools
# =============================================================================


@mcp.tool
def validate_screen(
    config: dict[str, Any],
    require_label: bool | None = None,
) -> dict[str, Any]:
    """Check the structure of a screen configuration.

    Args:
        config: Screen configuration document ({"accordions": [...]}).
        require_label: Also require widget labels. Defaults to the
            SCREEN_REQUIRE_WIDGET_LABEL setting.

    Returns:
        Dictionary with:
        - valid: True if the configuration can be saved
        - errors: Every structural problem found
    """
    if require_label is None:
        require_label = get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL)
    return validate_screen_config(config, require_label=require_label).to_dict()


@mcp.tool
def lint_screen(config: dict[str, Any]) -> dict[str, Any]:
    """Find authoring mistakes that do not block saving.

    Reports duplicate widget ids and fields, dependencies on unknown or
    self-owned fields, and conditions missing (or carrying a pointless)
    comparison value.

    Returns:
        Dictionary with ``issues``: list of {widget_id, message, issue_type}.
    """
    issues = lint_screen_config(_load(config))
    return {"issues": [asdict(issue) for issue in issues]}


@mcp.tool
def resolve_screen(
    config: dict[str, Any],
    values: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Compute visible/enabled/required for every widget.

    Args:
        config: Screen configuration document.
        values: Current form values keyed by field name.

    Returns:
        Dictionary mapping widget id to {visible, enabled, required}.
    """
    resolved = resolve(_load(config), values or {})
    return {widget_id: state.to_dict() for widget_id, state in resolved.items()}


@mcp.tool
def preview_screen(
    config: dict[str, Any],
    values: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Render a screen as a text tree for the given values.

    Hidden widgets are left out; flags show the resolved state:
        ```
        Applicant [accordion, open]
        └── Contact [section, 2 columns]
            ├── Preferred contact [radio-group, required] = 'email'
            └── E-mail address [email-input, required]
        ```

    Returns:
        Dictionary with ``draft``: the text tree.
    """
    return {"draft": _preview_screen(_load(config), values)}


@mcp.tool
def check_form_values(
    config: dict[str, Any],
    values: dict[str, Any],
) -> dict[str, Any]:
    """Check filled-in values against required flags and field rules.

    Only visible widgets are checked.

    Returns:
        Dictionary with:
        - valid: True if no rule failed
        - errors: list of {widget_id, field, message, rule}
    """
    errors = check_values(_load(config), values)
    return {"valid": not errors, "errors": [e.to_dict() for e in errors]}


# =============================================================================
# Storage Tools
# =============================================================================


@mcp.tool
def list_screens(active_only: bool = False) -> dict[str, Any]:
    """List stored screens ordered by name (configurations omitted)."""
    records = get_manager().list_screens(active_only=active_only)
    screens = []
    for record in records:
        data = record.to_dict()
        data.pop("config")
        screens.append(data)
    return {"screens": screens}


@mcp.tool
def get_screen(
    screen_id: str | None = None,
    screen_key: str | None = None,
) -> dict[str, Any]:
    """Get a stored screen by ID or by screen key."""
    if screen_id:
        return get_manager().get_screen(screen_id).to_dict()
    if screen_key:
        return get_manager().get_screen_by_key(screen_key).to_dict()
    raise ValueError("Provide screen_id or screen_key")


@mcp.tool
def create_screen(
    screen_key: str,
    screen_name: str,
    config: dict[str, Any],
    description: str | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    """Validate and store a new screen.

    Fails with the list of validation errors if the configuration is
    invalid, or if the screen key is taken.
    """
    record = get_manager().create_screen(
        screen_key=screen_key,
        screen_name=screen_name,
        config=config,
        description=description,
        is_active=is_active,
    )
    return record.to_dict()


@mcp.tool
def update_screen(
    screen_id: str,
    screen_key: str | None = None,
    screen_name: str | None = None,
    config: dict[str, Any] | None = None,
    description: str | None = None,
    is_active: bool | None = None,
) -> dict[str, Any]:
    """Update a stored screen. Omitted arguments are left unchanged."""
    record = get_manager().update_screen(
        screen_id,
        screen_key=screen_key,
        screen_name=screen_name,
        config=config,
        description=description,
        is_active=is_active,
    )
    return record.to_dict()


@mcp.tool
def delete_screen(screen_id: str) -> dict[str, Any]:
    """Delete a stored screen."""
    get_manager().delete_screen(screen_id)
    return {"deleted": screen_id}


@mcp.tool
def get_server_info() -> dict[str, Any]:
    """Get server name and version."""
    return {"name": SERVER_NAME, "version": get_server_version()}


# =============================================================================
# Server Lifecycle
# =============================================================================


def create_server() -> FastMCP:
    """Create and configure the MCP server instance."""
    return mcp


def run_server(config: ServerConfig | None = None) -> None:
    """Run the MCP server with the given configuration.

    Args:
        config: Transport, bind address and path. Read from the
            environment (stdio transport) when omitted.
    """
    config = config or ServerConfig.from_env()
    transport = config.transport
    logger.info(f"Starting {config.name} server v{get_server_version()}")
    logger.info(f"Transport: {transport.value}")

    if transport == TransportType.STDIO:
        mcp.run()
    elif transport == TransportType.HTTP:
        logger.info(
            f"Running in HTTP mode at http://{config.host}:{config.port}{config.path}"
        )
        mcp.run(transport="http", host=config.host, port=config.port, path=config.path)
    elif transport == TransportType.SSE:
        logger.info(f"Running in SSE mode at http://{config.host}:{config.port}")
        mcp.run(transport="sse", host=config.host, port=config.port)
    else:
        raise ValueError(f"Unknown transport: {transport}")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for MCP server.

    Args:
        argv: Command line arguments (uses sys.argv if None).

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP server for insurance screen configurations",
    )
    parser.add_argument(
        "--transport",
        "-t",
        type=str,
        choices=[t.value for t in TransportType],
        default="stdio",
        help="Transport type (default: stdio)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Bind address for HTTP/SSE (default: MCP_HOST)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port for HTTP/SSE (default: MCP_PORT)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    setup_logging(
        logging.DEBUG if args.verbose else get_log_level()
    )

    try:
        config = ServerConfig.from_env(
            transport=TransportType(args.transport),
            host=args.host,
            port=args.port,
        )
        run_server(config)
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Server error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
