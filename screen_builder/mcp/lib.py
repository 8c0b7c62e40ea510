"""Core MCP server logic for screen-builder.

Provides configuration for creating MCP server instances.
"""

from dataclasses import dataclass
from enum import Enum

from screen_builder.config import EnvVar, get_environment

SERVER_NAME = "screen-builder"


class TransportType(str, Enum):
    """Supported MCP transport types."""

    STDIO = "stdio"
    HTTP = "http"
    SSE = "sse"


@dataclass
class ServerConfig:
    """Configuration for MCP server.

    Attributes:
        name: Server display name.
        transport: Transport type for communication.
        host: Bind address for HTTP/SSE transports.
        port: Port for HTTP/SSE transports.
        path: URL path for HTTP transport.
    """

    name: str = SERVER_NAME
    transport: TransportType = TransportType.STDIO
    host: str = "0.0.0.0"
    port: int = 18080
    path: str = "/mcp"

    @classmethod
    def from_env(
        cls,
        transport: TransportType | None = None,
        host: str | None = None,
        port: int | None = None,
    ) -> "ServerConfig":
        """Create config from environment variables.

        Args:
            transport: Override transport type (default: STDIO).
            host: Override bind address (default: MCP_HOST).
            port: Override port (default: MCP_PORT).
        """
        return cls(
            transport=transport or TransportType.STDIO,
            host=get_environment(EnvVar.MCP_HOST, override=host),
            port=get_environment(EnvVar.MCP_PORT, override=port),
            path=get_environment(EnvVar.MCP_PATH),
        )


def get_server_version() -> str:
    """Get server version string."""
    return "0.1.0"


__all__ = [
    "SERVER_NAME",
    "TransportType",
    "ServerConfig",
    "get_server_version",
]
