"""MCP (Model Context Protocol) server for screen-builder.

Example:
    # Start server in STDIO mode
    >>> from screen_builder.mcp import run_server
    >>> run_server()

    # Start server in HTTP mode
    >>> from screen_builder.mcp import ServerConfig, TransportType, run_server
    >>> run_server(ServerConfig.from_env(transport=TransportType.HTTP, port=18080))
"""

from .lib import SERVER_NAME, ServerConfig, TransportType, get_server_version
from .server import create_server, get_manager, main, mcp, run_server, set_manager

__all__ = [
    # Server instance
    "mcp",
    "create_server",
    "run_server",
    "main",
    "get_manager",
    "set_manager",
    # Configuration
    "SERVER_NAME",
    "ServerConfig",
    "TransportType",
    "get_server_version",
]
