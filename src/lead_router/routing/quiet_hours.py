"""Tenant quiet-hours policy."""

from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import SchemaValidationError


@dataclass(frozen=True)
class QuietHours:
    """Hours of the day during which outbound contact is restricted.

    The window is ``[start_hour, end_hour)`` in local time and wraps midnight
    when ``start_hour > end_hour``. Equal hours disable quiet hours.
    """

    start_hour: int = 21
    end_hour: int = 8
    timezone: str = "America/New_York"

    def __post_init__(self):
        for name in ("start_hour", "end_hour"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 23:
                raise SchemaValidationError("QuietHours", message=f"{name} must be an hour 0-23, got {value!r}")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise SchemaValidationError("QuietHours", message=f"unknown timezone {self.timezone!r}")

    def is_active(self, now: datetime) -> bool:
        """Check whether ``now`` falls inside quiet hours."""
        if now.tzinfo is None or now.utcoffset() is None:
            raise SchemaValidationError("QuietHours", message="now must be timezone-aware")

        hour = now.astimezone(ZoneInfo(self.timezone)).hour
        if self.start_hour <= self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour
