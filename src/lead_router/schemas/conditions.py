"""Schemas for routing rule conditions."""

import re
from enum import Enum
from typing import Annotated, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from .base import RoutingModel

TIME_EXPRESSION = re.compile(r"[0-9]{2}:[0-9]{2}")

DayIndex = Annotated[int, Field(strict=True, ge=0, le=6)]
Price = Annotated[float, Field(strict=True, allow_inf_nan=False)]


class ConsentRequirement(str, Enum):
    """What a rule requires of a contact channel's consent."""
    OPTIONAL = "OPTIONAL"
    GRANTED = "GRANTED"
    NOT_REVOKED = "NOT_REVOKED"


class BuyerRepRequirement(str, Enum):
    """What a rule requires of the lead's buyer representation."""
    ANY = "ANY"
    REQUIRED_ACTIVE = "REQUIRED_ACTIVE"
    PROHIBIT_ACTIVE = "PROHIBIT_ACTIVE"


def parse_time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes after midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class TimeWindow(RoutingModel):
    """A daily window in its own IANA time zone.

    ``start > end`` is an overnight window that wraps midnight. ``days`` uses
    Sunday = 0; absent or empty means every day.
    """

    timezone: str
    start: str
    end: str
    days: Optional[List[DayIndex]] = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone {value!r}")
        return value

    @field_validator("start", "end")
    @classmethod
    def _time_expression(cls, value: str) -> str:
        if not TIME_EXPRESSION.fullmatch(value):
            raise ValueError("must be formatted HH:MM")
        hours, minutes = (int(part) for part in value.split(":"))
        if hours > 23 or minutes > 59:
            raise ValueError(f"{value} is not a valid time of day")
        return value

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)

    @property
    def is_overnight(self) -> bool:
        return self.start_minutes > self.end_minutes


class GeographyCondition(RoutingModel):
    include_states: Optional[List[str]] = None
    include_cities: Optional[List[str]] = None
    include_postal_codes: Optional[List[str]] = None
    exclude_states: Optional[List[str]] = None
    exclude_cities: Optional[List[str]] = None
    exclude_postal_codes: Optional[List[str]] = None


class PriceBandCondition(RoutingModel):
    min: Optional[Annotated[Price, Field(ge=0)]] = None
    max: Optional[Annotated[Price, Field(gt=0)]] = None
    currency: Optional[str] = None


class SourceCondition(RoutingModel):
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None


class ConsentCondition(RoutingModel):
    sms: Optional[ConsentRequirement] = None
    email: Optional[ConsentRequirement] = None


class RoutingConditions(RoutingModel):
    """Conjunction of optional clauses. An empty set always matches."""

    geography: Optional[GeographyCondition] = None
    price_band: Optional[PriceBandCondition] = None
    sources: Optional[SourceCondition] = None
    consent: Optional[ConsentCondition] = None
    buyer_rep: Optional[BuyerRepRequirement] = None
    time_windows: Optional[List[TimeWindow]] = None
