"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_db_path,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("MCP_PORT", raising=False)
        assert get_environment(EnvVar.MCP_PORT) == 18080

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("MCP_PORT", "9999")
        assert get_environment(EnvVar.MCP_PORT, override=5000) == 5000

    @pytest.mark.unit
    def test_int_type_conversion(self, monkeypatch):
        """Integer type conversion from string."""
        monkeypatch.setenv("API_BINDING_TIMEOUT", "30")
        result = get_environment(EnvVar.API_BINDING_TIMEOUT)
        assert result == 30
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("MCP_PORT", "not-a-number")
        assert get_environment(EnvVar.MCP_PORT) == 18080

    @pytest.mark.unit
    def test_bool_type_conversion_true(self, monkeypatch):
        """Boolean type conversion for true values."""
        for value in ("true", "1", "yes", "TRUE", "Yes"):
            monkeypatch.setenv("SCREEN_REQUIRE_WIDGET_LABEL", value)
            assert get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL) is True

    @pytest.mark.unit
    def test_bool_type_conversion_false(self, monkeypatch):
        """Boolean type conversion for false values."""
        for value in ("false", "0", "no", "FALSE", "No"):
            monkeypatch.setenv("SCREEN_REQUIRE_WIDGET_LABEL", value)
            assert get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL) is False

    @pytest.mark.unit
    def test_unrecognized_bool_returns_default(self, monkeypatch):
        """Garbage boolean values fall back to the default."""
        monkeypatch.setenv("SCREEN_REQUIRE_WIDGET_LABEL", "maybe")
        assert get_environment(EnvVar.SCREEN_REQUIRE_WIDGET_LABEL) is False

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch, tmp_path):
        """Path variables are returned as Path objects."""
        monkeypatch.setenv("SCREEN_DB_PATH", str(tmp_path / "x.db"))
        result = get_environment(EnvVar.SCREEN_DB_PATH)
        assert result == tmp_path / "x.db"
        assert isinstance(result, Path)


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.MCP_PORT)
        assert isinstance(info, EnvConfig)
        assert info.name == "MCP_PORT"
        assert info.default == 18080
        assert info.var_type is int
        assert info.category == "service"


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        service_vars = list_environment_variables("service")
        assert EnvVar.MCP_PORT in service_vars
        assert EnvVar.SCREEN_DB_PATH not in service_vars


class TestConvenienceFunctions:
    """Tests for the db path and log level helpers."""

    @pytest.mark.unit
    def test_db_path_override(self, monkeypatch):
        """Explicit override wins over the environment."""
        monkeypatch.setenv("SCREEN_DB_PATH", "/elsewhere/screens.db")
        assert get_db_path("/tmp/custom.db") == Path("/tmp/custom.db")

    @pytest.mark.unit
    def test_db_path_default(self, monkeypatch):
        """Default path lives under data/screens."""
        monkeypatch.delenv("SCREEN_DB_PATH", raising=False)
        assert get_db_path() == Path("data/screens/screens.db")

    @pytest.mark.unit
    def test_log_level_upper_cased(self, monkeypatch):
        """Log level is normalized to upper case."""
        monkeypatch.setenv("SCREEN_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"
