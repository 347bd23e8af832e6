"""Lead routing: condition evaluation, agent scoring and rule-based assignment."""

from .context import ConsentContext, ConsentState, ListingContext, PersonContext, RoutingContext
from .evaluator import ConditionCheck, ConditionKey, EvaluationResult, evaluate_conditions
from .quiet_hours import QuietHours
from .roster import AgentProfile, Candidate, TourRecord, build_candidate, build_snapshot
from .router import (
    CandidateStatus,
    DecisionCandidate,
    LeadRouter,
    ReasonCode,
    RouteAssignment,
    SlaTimer,
    SlaType,
)
from .scorer import AgentScore, ReasonType, RoutingResult, ScoreReason, route_lead, score_agent

__all__ = [
    "ConsentContext",
    "ConsentState",
    "ListingContext",
    "PersonContext",
    "RoutingContext",
    "ConditionCheck",
    "ConditionKey",
    "EvaluationResult",
    "evaluate_conditions",
    "QuietHours",
    "AgentProfile",
    "Candidate",
    "TourRecord",
    "build_candidate",
    "build_snapshot",
    "CandidateStatus",
    "DecisionCandidate",
    "LeadRouter",
    "ReasonCode",
    "RouteAssignment",
    "SlaTimer",
    "SlaType",
    "AgentScore",
    "ReasonType",
    "RoutingResult",
    "ScoreReason",
    "route_lead",
    "score_agent",
]
