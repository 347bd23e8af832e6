"""Build agent snapshots and routing candidates from roster data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..errors import SchemaValidationError
from ..schemas.base import validate_model
from ..schemas.context import RosterEntry
from ..schemas.scoring import AgentSnapshot
from .context import ListingContext, RoutingContext
from .scorer import round_half_up

DEFAULT_CAPACITY_TARGET = 8
# Fit used when there is nothing to compare against
NEUTRAL_FIT = 0.7


@dataclass(frozen=True)
class TourRecord:
    """An open (requested or confirmed) tour on an agent's calendar."""

    city: Optional[str] = None
    price: Optional[float] = None


@dataclass
class AgentProfile:
    """Roster facts about one agent, as loaded by the caller."""

    user_id: str
    first_name: str = ""
    last_name: str = ""
    team_ids: List[str] = field(default_factory=list)
    roles: List[str] = field(default_factory=list)
    active_tours: List[TourRecord] = field(default_factory=list)
    kept_tours: int = 0
    total_tours: int = 0
    capacity_target: int = DEFAULT_CAPACITY_TARGET

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def kept_appt_rate(self) -> float:
        """Kept share of finished tours; 0.5 with no history."""
        if self.total_tours == 0:
            return 0.5
        return self.kept_tours / self.total_tours


@dataclass(frozen=True)
class Candidate:
    """An agent snapshot plus the roster facts routing rules filter on."""

    snapshot: AgentSnapshot
    team_ids: Tuple[str, ...] = ()
    roles: Tuple[str, ...] = ()

    def __post_init__(self):
        snapshot = validate_model(AgentSnapshot, self.snapshot)
        object.__setattr__(self, "snapshot", snapshot)
        for name in ("team_ids", "roles"):
            if isinstance(getattr(self, name), str):
                raise SchemaValidationError("Candidate", message=f"{name} must be a list of strings")
        team_ids = tuple(self.team_ids)
        if not team_ids and snapshot.team_id:
            team_ids = (snapshot.team_id,)
        object.__setattr__(self, "team_ids", team_ids)
        object.__setattr__(self, "roles", tuple(self.roles))

    @property
    def user_id(self) -> str:
        return self.snapshot.user_id

    @property
    def gating_reasons(self) -> List[str]:
        reasons = []
        if not self.snapshot.consent_ready:
            reasons.append("Missing compliant contact channel")
        if not self.snapshot.ten_dlc_ready:
            reasons.append("Tenant messaging readiness incomplete")
        return reasons

    @property
    def is_eligible(self) -> bool:
        return not self.gating_reasons

    @property
    def capacity_remaining(self) -> float:
        return max(self.snapshot.capacity_target - self.snapshot.active_pipeline, 0)

    def has_role(self, roles: List[str]) -> bool:
        wanted = {role.lower() for role in roles}
        return any(role.lower() in wanted for role in self.roles)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        """Build from ``{"snapshot": {...}, "teamIds": [...], "roles": [...]}``."""
        entry = validate_model(RosterEntry, data, "Candidate")
        return cls(
            snapshot=entry.snapshot,
            team_ids=tuple(entry.team_ids or ()),
            roles=tuple(entry.roles or ()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "snapshot": self.snapshot.to_dict(),
            "teamIds": list(self.team_ids),
            "roles": list(self.roles),
        }


def compute_geography_fit(profile: AgentProfile, listing: Optional[ListingContext]) -> float:
    """1.0 when the agent is already touring in the listing's city."""
    if listing is None or not listing.city:
        return NEUTRAL_FIT
    cities = [tour.city.lower() for tour in profile.active_tours if tour.city]
    if listing.city.lower() in cities:
        return 1.0
    return 0.6 if cities else NEUTRAL_FIT


def compute_price_band_fit(profile: AgentProfile, listing: Optional[ListingContext]) -> float:
    """Closeness of the listing price to the agent's average touring price."""
    if listing is None or not listing.price:
        return NEUTRAL_FIT
    prices = [tour.price for tour in profile.active_tours if tour.price and tour.price > 0]
    if not prices:
        return 0.75

    average = sum(prices) / len(prices)
    delta = abs(average - listing.price)
    spread = max(listing.price, average) or 1
    return round_half_up(max(0.4, 1 - delta / spread), 2)


def build_snapshot(
    profile: AgentProfile,
    listing: Optional[ListingContext] = None,
    has_consent: bool = True,
    ten_dlc_ready: bool = True,
) -> AgentSnapshot:
    """Turn a roster profile into the scorer's input."""
    return validate_model(AgentSnapshot, {
        "user_id": profile.user_id,
        "full_name": profile.full_name,
        "capacity_target": profile.capacity_target,
        "active_pipeline": len(profile.active_tours),
        "geography_fit": compute_geography_fit(profile, listing),
        "price_band_fit": compute_price_band_fit(profile, listing),
        "kept_appt_rate": profile.kept_appt_rate,
        "consent_ready": has_consent,
        "ten_dlc_ready": ten_dlc_ready,
        "team_id": profile.team_ids[0] if profile.team_ids else None,
        "round_robin_order": 0,
    })


def build_candidate(
    profile: AgentProfile,
    context: RoutingContext,
    ten_dlc_ready: bool = True,
) -> Candidate:
    """Build a routing candidate for one agent and one lead.

    The agent can only be reached if the lead has granted consent on at
    least one channel.
    """
    has_consent = context.person.consent.has_granted_channel
    return Candidate(
        snapshot=build_snapshot(profile, context.listing, has_consent, ten_dlc_ready),
        team_ids=tuple(profile.team_ids),
        roles=tuple(profile.roles),
    )


CandidateInput = Union[Candidate, Dict[str, Any]]
