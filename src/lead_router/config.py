"""Environment-based configuration for the CLI and API shells.

The routing core never reads these settings; weights and thresholds only come
from explicit RoutingConfig values.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


class Settings:
    """Shell configuration loaded from environment variables."""

    def __init__(self):
        self.host = os.getenv("LEAD_ROUTER_HOST", "0.0.0.0")
        self.port = _int_env("LEAD_ROUTER_PORT", 8000)
        self.log_level = os.getenv("LEAD_ROUTER_LOG_LEVEL", "INFO").upper()
        self.default_timezone = os.getenv("LEAD_ROUTER_TIMEZONE", "America/New_York")

        # Tenant quiet hours (local hour of day)
        self.quiet_hours_start = _int_env("LEAD_ROUTER_QUIET_START", 21)
        self.quiet_hours_end = _int_env("LEAD_ROUTER_QUIET_END", 8)
        for name, value in (
            ("LEAD_ROUTER_QUIET_START", self.quiet_hours_start),
            ("LEAD_ROUTER_QUIET_END", self.quiet_hours_end),
        ):
            if not 0 <= value <= 23:
                raise RuntimeError(f"{name} must be between 0 and 23, got {value}")


_settings = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Drop cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None


class _SettingsProxy:
    """Lazy proxy so settings aren't loaded until first access."""

    def __getattr__(self, name):
        return getattr(get_settings(), name)


settings = _SettingsProxy()
