"""Validated data shapes for routing rules, rosters and configuration."""

from .base import RoutingModel, validate_model
from .conditions import (
    BuyerRepRequirement,
    ConsentCondition,
    ConsentRequirement,
    GeographyCondition,
    PriceBandCondition,
    RoutingConditions,
    SourceCondition,
    TimeWindow,
)
from .context import (
    ConsentInput,
    ConsentState,
    ListingInput,
    PersonInput,
    RosterEntry,
    RoutingContextInput,
)
from .rules import (
    AgentTarget,
    EscalationChannel,
    PondTarget,
    RoutingFallback,
    RoutingMode,
    RoutingRuleDefinition,
    RoutingTarget,
    RuleConfig,
    TeamStrategy,
    TeamTarget,
)
from .scoring import AgentSnapshot, RoutingConfig, RoutingInput

__all__ = [
    "RoutingModel",
    "validate_model",
    "BuyerRepRequirement",
    "ConsentCondition",
    "ConsentRequirement",
    "GeographyCondition",
    "PriceBandCondition",
    "RoutingConditions",
    "SourceCondition",
    "TimeWindow",
    "ConsentInput",
    "ConsentState",
    "ListingInput",
    "PersonInput",
    "RosterEntry",
    "RoutingContextInput",
    "AgentTarget",
    "EscalationChannel",
    "PondTarget",
    "RoutingFallback",
    "RoutingMode",
    "RoutingRuleDefinition",
    "RoutingTarget",
    "RuleConfig",
    "TeamStrategy",
    "TeamTarget",
    "AgentSnapshot",
    "RoutingConfig",
    "RoutingInput",
]
