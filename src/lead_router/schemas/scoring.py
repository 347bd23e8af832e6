"""Schemas for agent scoring and lead routing input."""

from typing import Annotated, List, Optional

from pydantic import Field, StrictBool

from .base import RoutingModel

Number = Annotated[float, Field(strict=True, allow_inf_nan=False)]
Weight = Annotated[float, Field(strict=True, allow_inf_nan=False, ge=0)]


class RoutingConfig(RoutingModel):
    """Score weights and the absolute selection floor.

    Weights are used as given and never normalized, so a score is only
    comparable between callers that share a weight budget.
    """

    minimum_score: Number = 0.6
    performance_weight: Weight = 0.25
    capacity_weight: Weight = 0.35
    geography_weight: Weight = 0.2
    price_band_weight: Weight = 0.2

    @property
    def total_weight(self) -> float:
        return (
            self.performance_weight
            + self.capacity_weight
            + self.geography_weight
            + self.price_band_weight
        )


class AgentSnapshot(RoutingModel):
    """Point-in-time view of one candidate agent.

    Fit and performance values are expected in [0, 1] and are clamped by the
    scorer. ``consent_ready`` and ``ten_dlc_ready`` are hard eligibility gates.
    """

    user_id: str
    full_name: str
    capacity_target: Number
    active_pipeline: Number
    geography_fit: Number
    price_band_fit: Number
    kept_appt_rate: Number
    consent_ready: StrictBool
    ten_dlc_ready: StrictBool
    team_id: Optional[str] = None
    round_robin_order: Optional[Annotated[int, Field(strict=True)]] = None


class RoutingInput(RoutingModel):
    """One lead and the roster it may be assigned to."""

    lead_id: str
    tenant_id: str
    agents: List[AgentSnapshot] = Field(default_factory=list)
    config: Optional[RoutingConfig] = None
    fallback_team_id: Optional[str] = None
    quiet_hours: StrictBool = False
