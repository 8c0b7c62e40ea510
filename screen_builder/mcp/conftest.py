"""Pytest fixtures for MCP server tests."""

from __future__ import annotations

from typing import AsyncGenerator

import pytest
from fastmcp import Client, FastMCP

from .server import create_server, set_manager


@pytest.fixture
def stored_screens(screen_manager):
    """Point the CRUD tools at the throwaway screen manager."""
    set_manager(screen_manager)
    yield screen_manager
    set_manager(None)


@pytest.fixture
def mcp_server() -> FastMCP:
    return create_server()


@pytest.fixture
async def mcp_client(mcp_server: FastMCP) -> AsyncGenerator[Client, None]:
    """Create connected MCP client for testing."""
    async with Client(mcp_server) as client:
        yield client
