"""Unit tests for MCP server module.

Tests cover:
- Server configuration
- Analysis tools (validate, lint, resolve, preview, check)
- Storage tools backed by a temporary database
- Protocol round trip through the fastmcp client
"""

import pytest

from screen_builder.screens import ScreenNotFoundError

from . import server
from .lib import ServerConfig, TransportType, get_server_version
from .server import (
    check_form_values,
    create_screen,
    delete_screen,
    get_screen,
    get_server_info,
    lint_screen,
    list_screens,
    main,
    preview_screen,
    resolve_screen,
    update_screen,
    validate_screen,
)

# =============================================================================
# Configuration Tests
# =============================================================================


class TestServerConfig:
    """Tests for ServerConfig dataclass."""

    @pytest.mark.unit
    def test_default_config(self):
        config = ServerConfig()

        assert config.name == "screen-builder"
        assert config.transport == TransportType.STDIO
        assert config.port == 18080
        assert config.path == "/mcp"

    @pytest.mark.unit
    def test_from_env(self, monkeypatch):
        """from_env reads host and port from the environment."""
        monkeypatch.setenv("MCP_PORT", "9001")
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        config = ServerConfig.from_env(transport=TransportType.HTTP)

        assert config.transport == TransportType.HTTP
        assert config.port == 9001
        assert config.host == "127.0.0.1"

    @pytest.mark.unit
    def test_from_env_path(self, monkeypatch):
        monkeypatch.setenv("MCP_PATH", "/screens-mcp")
        assert ServerConfig.from_env().path == "/screens-mcp"

    @pytest.mark.unit
    def test_main_builds_config(self, monkeypatch):
        """Command line host and port override the environment."""
        captured = []
        monkeypatch.setattr(server, "run_server", captured.append)
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("MCP_PORT", "9001")

        assert main(["--transport", "http", "--port", "9100"]) == 0

        (config,) = captured
        assert isinstance(config, ServerConfig)
        assert config.transport == TransportType.HTTP
        assert config.host == "127.0.0.1"
        assert config.port == 9100
        assert config.path == "/mcp"

    @pytest.mark.unit
    def test_main_defaults_from_env(self, monkeypatch):
        captured = []
        monkeypatch.setattr(server, "run_server", captured.append)
        monkeypatch.setenv("MCP_PORT", "9001")

        assert main([]) == 0
        assert captured[0].transport == TransportType.STDIO
        assert captured[0].port == 9001

    @pytest.mark.unit
    def test_invalid_transport_rejected(self):
        with pytest.raises(SystemExit):
            main(["--transport", "carrier-pigeon"])

    @pytest.mark.unit
    def test_server_info(self):
        assert get_server_info.fn() == {
            "name": "screen-builder",
            "version": get_server_version(),
        }


# =============================================================================
# Analysis Tool Tests
# =============================================================================


class TestAnalysisTools:
    """Tests for the stateless tools."""

    @pytest.mark.unit
    def test_validate(self, sample_screen_dict):
        assert validate_screen.fn(sample_screen_dict) == {"valid": True, "errors": []}
        result = validate_screen.fn({"accordions": None})
        assert result["errors"] == ["Screen configuration must contain an accordions array"]

    @pytest.mark.unit
    def test_validate_require_label(self, sample_screen_dict):
        doc = {
            "accordions": [
                {
                    "id": "a",
                    "title": "A",
                    "sections": [
                        {
                            "id": "s",
                            "title": "S",
                            "columns": 1,
                            "widgets": [{"id": "w", "type": "text", "field": "f"}],
                        }
                    ],
                }
            ]
        }
        assert validate_screen.fn(doc, require_label=False)["valid"] is True
        assert validate_screen.fn(doc, require_label=True)["valid"] is False

    @pytest.mark.unit
    def test_lint_clean(self, sample_screen_dict):
        assert lint_screen.fn(sample_screen_dict) == {"issues": []}

    @pytest.mark.unit
    def test_lint_rejects_unparseable(self):
        with pytest.raises(ValueError, match="Invalid screen configuration"):
            lint_screen.fn({"accordions": [{"id": "a"}]})

    @pytest.mark.unit
    def test_resolve(self, sample_screen_dict):
        result = resolve_screen.fn(sample_screen_dict, {"contactMethod": "phone"})
        assert result["w-phone"] == {"visible": True, "enabled": True, "required": True}
        assert result["w-email"]["visible"] is False
        assert result["w-escalation"]["enabled"] is False

    @pytest.mark.unit
    def test_preview(self, sample_screen_dict):
        draft = preview_screen.fn(sample_screen_dict, {"contactMethod": "email"})["draft"]
        assert draft.startswith("Applicant [accordion, open]")
        assert "E-mail address [email-input, required]" in draft

    @pytest.mark.unit
    def test_check_form_values(self, sample_screen_dict):
        result = check_form_values.fn(sample_screen_dict, {"contactMethod": "email"})
        assert result["valid"] is False
        assert result["errors"][0]["widget_id"] == "w-email"


# =============================================================================
# Storage Tool Tests
# =============================================================================


class TestStorageTools:
    """Tests for the CRUD tools."""

    @pytest.mark.unit
    def test_round_trip(self, stored_screens, sample_screen_dict):
        created = create_screen.fn("contact", "Contact", sample_screen_dict)
        assert created["screenKey"] == "contact"

        listed = list_screens.fn()["screens"]
        assert [s["id"] for s in listed] == [created["id"]]
        assert "config" not in listed[0]

        assert get_screen.fn(screen_key="contact")["id"] == created["id"]
        updated = update_screen.fn(created["id"], description="Applicant contact")
        assert updated["description"] == "Applicant contact"

        assert delete_screen.fn(created["id"]) == {"deleted": created["id"]}
        with pytest.raises(ScreenNotFoundError):
            get_screen.fn(screen_id=created["id"])

    @pytest.mark.unit
    def test_get_requires_identifier(self, stored_screens):
        with pytest.raises(ValueError):
            get_screen.fn()


# =============================================================================
# Protocol Tests
# =============================================================================


class TestMCPProtocol:
    """Integration tests through the MCP client."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_tools_listed(self, mcp_client):
        names = {tool.name for tool in await mcp_client.list_tools()}
        assert {
            "validate_screen",
            "lint_screen",
            "resolve_screen",
            "preview_screen",
            "check_form_values",
            "list_screens",
            "create_screen",
        } <= names

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_call_validate(self, mcp_client):
        result = await mcp_client.call_tool("validate_screen", {"config": {"accordions": []}})
        assert result.data == {"valid": True, "errors": []}
