"""Facts a routing rule is evaluated against."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from ..errors import SchemaValidationError
from ..schemas.base import validate_model
from ..schemas.context import ConsentState, RoutingContextInput


def _consent_state(value: Any) -> ConsentState:
    if value is None:
        return ConsentState.UNKNOWN
    if isinstance(value, ConsentState):
        return value
    if isinstance(value, str):
        try:
            return ConsentState(value.upper())
        except ValueError:
            pass
    raise SchemaValidationError("ConsentContext", message=f"unknown consent state {value!r}")


@dataclass(frozen=True)
class ConsentContext:
    """Consent per channel. Unset channels are UNKNOWN, never None."""

    sms: ConsentState = ConsentState.UNKNOWN
    email: ConsentState = ConsentState.UNKNOWN

    def __post_init__(self):
        object.__setattr__(self, "sms", _consent_state(self.sms))
        object.__setattr__(self, "email", _consent_state(self.email))

    @classmethod
    def from_records(cls, records: Iterable[Tuple[str, str]]) -> "ConsentContext":
        """Resolve consent from ``(channel, status)`` records, most recent first.

        The first record seen for a channel wins. Statuses other than GRANTED
        or REVOKED (pending, expired, ...) resolve to UNKNOWN.
        """
        resolved: Dict[str, ConsentState] = {}
        for channel, status in records:
            key = (channel or "").lower()
            if key not in ("sms", "email") or key in resolved:
                continue
            status = (status or "").upper()
            if status == ConsentState.GRANTED.value:
                resolved[key] = ConsentState.GRANTED
            elif status == ConsentState.REVOKED.value:
                resolved[key] = ConsentState.REVOKED
            else:
                resolved[key] = ConsentState.UNKNOWN
        return cls(
            sms=resolved.get("sms", ConsentState.UNKNOWN),
            email=resolved.get("email", ConsentState.UNKNOWN),
        )

    @property
    def has_granted_channel(self) -> bool:
        return ConsentState.GRANTED in (self.sms, self.email)


@dataclass(frozen=True)
class PersonContext:
    """The lead's person record as seen by routing rules."""

    source: Optional[str] = None
    buyer_rep_status: Optional[str] = None
    consent: ConsentContext = field(default_factory=ConsentContext)


@dataclass(frozen=True)
class ListingContext:
    """The listing a lead came in on, if any."""

    price: Optional[float] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None


@dataclass(frozen=True)
class RoutingContext:
    """Everything a condition set is evaluated against.

    ``now`` must be timezone-aware so time windows resolve the same way on
    every host. ``tenant_timezone`` is carried for display only; each time
    window is matched in its own zone.
    """

    now: datetime
    person: PersonContext = field(default_factory=PersonContext)
    listing: Optional[ListingContext] = None
    tenant_timezone: str = "America/New_York"

    def __post_init__(self):
        if not isinstance(self.now, datetime):
            raise SchemaValidationError("RoutingContext", message="now must be a datetime")
        if self.now.tzinfo is None or self.now.utcoffset() is None:
            raise SchemaValidationError(
                "RoutingContext", message="now must be timezone-aware"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoutingContext":
        """Build a context from a camelCase JSON document."""
        parsed = validate_model(RoutingContextInput, data, "RoutingContext")

        person = PersonContext()
        if parsed.person is not None:
            consent = parsed.person.consent
            person = PersonContext(
                source=parsed.person.source,
                buyer_rep_status=parsed.person.buyer_rep_status,
                consent=ConsentContext(sms=consent.sms, email=consent.email) if consent else ConsentContext(),
            )

        listing = None
        if parsed.listing is not None:
            listing = ListingContext(
                price=parsed.listing.price,
                city=parsed.listing.city,
                state=parsed.listing.state,
                postal_code=parsed.listing.postal_code,
            )

        return cls(
            now=parsed.now,
            person=person,
            listing=listing,
            tenant_timezone=parsed.tenant_timezone or "America/New_York",
        )
