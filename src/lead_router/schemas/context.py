"""Schemas for routing context and roster documents."""

from enum import Enum
from typing import List, Optional

from pydantic import AwareDatetime, field_validator

from .base import RoutingModel
from .conditions import Price
from .scoring import AgentSnapshot


class ConsentState(str, Enum):
    """Consent status of one contact channel."""
    GRANTED = "GRANTED"
    REVOKED = "REVOKED"
    UNKNOWN = "UNKNOWN"


class ConsentInput(RoutingModel):
    sms: Optional[ConsentState] = None
    email: Optional[ConsentState] = None

    @field_validator("sms", "email", mode="before")
    @classmethod
    def _upper(cls, value):
        return value.upper() if isinstance(value, str) else value


class PersonInput(RoutingModel):
    source: Optional[str] = None
    buyer_rep_status: Optional[str] = None
    consent: Optional[ConsentInput] = None


class ListingInput(RoutingModel):
    price: Optional[Price] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


class RoutingContextInput(RoutingModel):
    """Wire form of a routing context. ``now`` must carry an offset."""

    now: AwareDatetime
    tenant_timezone: Optional[str] = None
    person: Optional[PersonInput] = None
    listing: Optional[ListingInput] = None


class RosterEntry(RoutingModel):
    """One roster document: an agent snapshot plus team and role membership."""

    snapshot: AgentSnapshot
    team_ids: Optional[List[str]] = None
    roles: Optional[List[str]] = None
