"""Schemas for routing targets, fallbacks and rule definitions."""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, StrictBool

from .base import RoutingModel
from .conditions import RoutingConditions


class TeamStrategy(str, Enum):
    """How a team target picks one member."""
    BEST_FIT = "BEST_FIT"
    ROUND_ROBIN = "ROUND_ROBIN"


class RoutingMode(str, Enum):
    """How a matched rule turns its targets into an assignment."""
    FIRST_MATCH = "FIRST_MATCH"
    SCORE_AND_ASSIGN = "SCORE_AND_ASSIGN"


class EscalationChannel(str, Enum):
    EMAIL = "EMAIL"
    SMS = "SMS"
    IN_APP = "IN_APP"


class AgentTarget(RoutingModel):
    type: Literal["AGENT"] = "AGENT"
    id: str
    label: Optional[str] = None


class TeamTarget(RoutingModel):
    type: Literal["TEAM"] = "TEAM"
    id: str
    strategy: TeamStrategy = TeamStrategy.BEST_FIT
    include_roles: Optional[List[str]] = None


class PondTarget(RoutingModel):
    type: Literal["POND"] = "POND"
    id: str
    label: Optional[str] = None


RoutingTarget = Annotated[
    Union[AgentTarget, TeamTarget, PondTarget],
    Field(discriminator="type"),
]


class RoutingFallback(RoutingModel):
    """Team that absorbs a lead when no agent qualifies."""

    team_id: str
    label: Optional[str] = None
    escalation_channels: Optional[List[EscalationChannel]] = None


class RuleConfig(RoutingModel):
    """Conditions, ordered targets and optional fallback of a rule."""

    conditions: RoutingConditions = Field(default_factory=RoutingConditions)
    targets: List[RoutingTarget] = Field(min_length=1)
    fallback: Optional[RoutingFallback] = None


class RoutingRuleDefinition(RuleConfig):
    """A named, prioritized rule as configured by a brokerage."""

    id: str
    name: str
    priority: Annotated[int, Field(strict=True)]
    mode: RoutingMode
    enabled: StrictBool = True
    sla_first_touch_minutes: Optional[Annotated[int, Field(strict=True, ge=1, le=1440)]] = None
    sla_kept_appointment_minutes: Optional[Annotated[int, Field(strict=True, ge=30, le=10080)]] = None
