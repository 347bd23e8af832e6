"""Tests for environment-based settings."""

import pytest

from lead_router.config import get_settings, reset_settings, settings


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


class TestSettings:
    """Tests for Settings loading."""

    def test_defaults(self, monkeypatch):
        for name in ("LEAD_ROUTER_HOST", "LEAD_ROUTER_PORT", "LEAD_ROUTER_LOG_LEVEL",
                     "LEAD_ROUTER_TIMEZONE", "LEAD_ROUTER_QUIET_START", "LEAD_ROUTER_QUIET_END"):
            monkeypatch.delenv(name, raising=False)
        loaded = get_settings()
        assert loaded.port == 8000
        assert loaded.log_level == "INFO"
        assert loaded.default_timezone == "America/New_York"
        assert (loaded.quiet_hours_start, loaded.quiet_hours_end) == (21, 8)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LEAD_ROUTER_PORT", "9100")
        monkeypatch.setenv("LEAD_ROUTER_LOG_LEVEL", "debug")
        monkeypatch.setenv("LEAD_ROUTER_TIMEZONE", "America/Chicago")
        assert settings.port == 9100
        assert settings.log_level == "DEBUG"
        assert settings.default_timezone == "America/Chicago"

    def test_settings_cached_until_reset(self, monkeypatch):
        monkeypatch.setenv("LEAD_ROUTER_PORT", "9100")
        assert settings.port == 9100
        monkeypatch.setenv("LEAD_ROUTER_PORT", "9200")
        assert settings.port == 9100
        reset_settings()
        assert settings.port == 9200

    @pytest.mark.parametrize("name,value", [
        ("LEAD_ROUTER_PORT", "eighty"),
        ("LEAD_ROUTER_QUIET_START", "24"),
        ("LEAD_ROUTER_QUIET_END", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(RuntimeError):
            get_settings()
