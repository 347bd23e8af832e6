"""Agent scoring and selection for a single lead."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..schemas.base import validate_model
from ..schemas.scoring import AgentSnapshot, RoutingConfig, RoutingInput

logger = logging.getLogger(__name__)

# Agents within this distance of the best score are selected together
SELECTION_TOLERANCE = 0.05
SCORE_PLACES = 4


class ReasonType(str, Enum):
    """Weighted factors, in the order they are reported."""
    CAPACITY = "CAPACITY"
    PERFORMANCE = "PERFORMANCE"
    GEOGRAPHY = "GEOGRAPHY"
    PRICE_BAND = "PRICE_BAND"


@dataclass(frozen=True)
class ScoreReason:
    """One weighted factor behind an agent's score."""

    type: ReasonType
    description: str
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "description": self.description, "weight": self.weight}


@dataclass(frozen=True)
class AgentScore:
    """Score of one eligible agent with its audit trail."""

    user_id: str
    full_name: str
    score: float
    reasons: Tuple[ScoreReason, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "fullName": self.full_name,
            "score": self.score,
            "reasons": [reason.to_dict() for reason in self.reasons],
        }


@dataclass(frozen=True)
class RoutingResult:
    """Routing decision for one lead."""

    lead_id: str
    tenant_id: str
    selected_agents: Tuple[AgentScore, ...]
    used_fallback: bool
    quiet_hours: bool
    fallback_team_id: Optional[str] = None

    @property
    def top_agent(self) -> Optional[AgentScore]:
        return self.selected_agents[0] if self.selected_agents else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "leadId": self.lead_id,
            "tenantId": self.tenant_id,
            "selectedAgents": [agent.to_dict() for agent in self.selected_agents],
            "usedFallback": self.used_fallback,
            "quietHours": self.quiet_hours,
        }
        if self.fallback_team_id is not None:
            data["fallbackTeamId"] = self.fallback_team_id
        return data


def round_half_up(value: float, places: int = SCORE_PLACES) -> float:
    """Round with ties away from zero, on the decimal form of ``value``."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def capacity_score(capacity_target: float, active_pipeline: float) -> float:
    """Share of capacity still free. Zero when no capacity is declared."""
    if capacity_target <= 0:
        return 0.0
    remaining = max(capacity_target - active_pipeline, 0)
    return clamp01(remaining / capacity_target)


def _percent(value: float) -> int:
    return int(round_half_up(value * 100, 0))


def score_agent(
    agent: Union[AgentSnapshot, Dict[str, Any]],
    config: Union[RoutingConfig, Dict[str, Any], None] = None,
) -> Optional[AgentScore]:
    """Score one agent, or return None when a messaging gate is closed.

    Missing consent or 10DLC registration makes the agent ineligible no
    matter how well they fit.
    """
    agent = validate_model(AgentSnapshot, agent)
    config = validate_model(RoutingConfig, config if config is not None else {})

    if not agent.consent_ready or not agent.ten_dlc_ready:
        logger.debug(
            f"Agent {agent.user_id} gated: consent_ready={agent.consent_ready}, "
            f"ten_dlc_ready={agent.ten_dlc_ready}"
        )
        return None

    capacity = capacity_score(agent.capacity_target, agent.active_pipeline)
    performance = clamp01(agent.kept_appt_rate)
    geography = clamp01(agent.geography_fit)
    price_band = clamp01(agent.price_band_fit)

    score = (
        capacity * config.capacity_weight
        + performance * config.performance_weight
        + geography * config.geography_weight
        + price_band * config.price_band_weight
    )

    reasons = (
        ScoreReason(
            ReasonType.CAPACITY,
            f"Capacity remaining {_percent(capacity)}%",
            config.capacity_weight,
        ),
        ScoreReason(
            ReasonType.PERFORMANCE,
            f"Kept appointment rate {_percent(performance)}%",
            config.performance_weight,
        ),
        ScoreReason(
            ReasonType.GEOGRAPHY,
            f"Geography fit {_percent(geography)}%",
            config.geography_weight,
        ),
        ScoreReason(
            ReasonType.PRICE_BAND,
            f"Price-band fit {_percent(price_band)}%",
            config.price_band_weight,
        ),
    )

    return AgentScore(
        user_id=agent.user_id,
        full_name=agent.full_name,
        score=round_half_up(score),
        reasons=reasons,
    )


def rank_agents(agents: List[AgentSnapshot], config: RoutingConfig) -> List[AgentScore]:
    """Score eligible agents, best first.

    The sort is stable, so agents with equal scores keep their input order.
    """
    scored = [score for score in (score_agent(agent, config) for agent in agents) if score is not None]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def route_lead(payload: Union[RoutingInput, Dict[str, Any]]) -> RoutingResult:
    """Pick the agents that should receive a lead.

    Every agent scoring at least ``minimum_score`` and within
    SELECTION_TOLERANCE of the best score is selected. When nobody
    qualifies the result is flagged ``used_fallback`` and carries the
    fallback team; the best-scored agent, if any, is still reported.
    """
    payload = validate_model(RoutingInput, payload)
    config = payload.config or RoutingConfig()

    scored = rank_agents(payload.agents, config)
    best_score = scored[0].score if scored else 0.0
    # Scores are already rounded; round the band floor the same way
    band_floor = round_half_up(best_score - SELECTION_TOLERANCE)

    # Filtering keeps the score order
    selected = [
        agent for agent in scored
        if agent.score >= config.minimum_score and agent.score >= band_floor
    ]

    used_fallback = not selected
    if used_fallback:
        logger.debug(
            f"Lead {payload.lead_id}: no agent reached {config.minimum_score} "
            f"(best {best_score}), falling back to {payload.fallback_team_id}"
        )

    return RoutingResult(
        lead_id=payload.lead_id,
        tenant_id=payload.tenant_id,
        selected_agents=tuple(scored[:1] if used_fallback else selected),
        used_fallback=used_fallback,
        quiet_hours=payload.quiet_hours,
        fallback_team_id=payload.fallback_team_id if used_fallback else None,
    )
