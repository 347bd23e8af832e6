"""Lead routing engine: rule evaluation, agent scoring and assignment."""

from .errors import SchemaValidationError
from .routing import (
    LeadRouter,
    RoutingContext,
    evaluate_conditions,
    route_lead,
    score_agent,
)
from .schemas import AgentSnapshot, RoutingConditions, RoutingConfig, RoutingInput

__version__ = "1.0.0"

__all__ = [
    "SchemaValidationError",
    "LeadRouter",
    "RoutingContext",
    "evaluate_conditions",
    "route_lead",
    "score_agent",
    "AgentSnapshot",
    "RoutingConditions",
    "RoutingConfig",
    "RoutingInput",
]
