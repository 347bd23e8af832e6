"""Rule-driven lead assignment on top of the evaluator and scorer."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..errors import SchemaValidationError
from ..schemas.base import validate_model
from ..schemas.rules import (
    AgentTarget,
    PondTarget,
    RoutingMode,
    RoutingRuleDefinition,
    TeamStrategy,
    TeamTarget,
)
from ..schemas.scoring import RoutingConfig, RoutingInput
from .context import RoutingContext
from .evaluator import EvaluationResult, evaluate_conditions
from .quiet_hours import QuietHours
from .roster import Candidate, CandidateInput
from .scorer import AgentScore, route_lead, score_agent

logger = logging.getLogger(__name__)


class ReasonCode(str, Enum):
    """Why a routing decision came out the way it did."""
    RULE_MATCHED = "RULE_MATCHED"
    DIRECT_AGENT = "DIRECT_AGENT"
    BEST_FIT = "BEST_FIT"
    ROUND_ROBIN = "ROUND_ROBIN"
    TEAM_POND = "TEAM_POND"
    NO_RULE_MATCH = "NO_RULE_MATCH"


class CandidateStatus(str, Enum):
    SELECTED = "SELECTED"
    REJECTED = "REJECTED"
    DISQUALIFIED = "DISQUALIFIED"


class SlaType(str, Enum):
    FIRST_TOUCH = "FIRST_TOUCH"
    KEPT_APPOINTMENT = "KEPT_APPOINTMENT"


@dataclass(frozen=True)
class DecisionCandidate:
    """How one considered agent fared in a routing decision."""

    agent_id: str
    full_name: str
    status: CandidateStatus
    score: Optional[float]
    reasons: Tuple[str, ...]
    capacity_remaining: float
    consent_ready: bool
    ten_dlc_ready: bool
    team_ids: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "agentId": self.agent_id,
            "fullName": self.full_name,
            "status": self.status.value,
            "reasons": list(self.reasons),
            "capacityRemaining": self.capacity_remaining,
            "consentReady": self.consent_ready,
            "tenDlcReady": self.ten_dlc_ready,
            "teamIds": list(self.team_ids),
        }
        if self.score is not None:
            data["score"] = self.score
        return data


@dataclass(frozen=True)
class SlaTimer:
    """A service-level deadline started by an assignment."""

    type: SlaType
    rule_id: str
    due_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "ruleId": self.rule_id, "dueAt": self.due_at.isoformat()}


@dataclass(frozen=True)
class RouteAssignment:
    """Full, auditable outcome of routing one lead through the rule list."""

    lead_id: str
    tenant_id: str
    selected_agents: Tuple[AgentScore, ...]
    used_fallback: bool
    quiet_hours: bool
    fallback_team_id: Optional[str] = None
    assigned_agent_id: Optional[str] = None
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    evaluation: Optional[EvaluationResult] = None
    candidates: Tuple[DecisionCandidate, ...] = ()
    reason_codes: Tuple[ReasonCode, ...] = ()
    sla_timers: Tuple[SlaTimer, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "leadId": self.lead_id,
            "tenantId": self.tenant_id,
            "selectedAgents": [agent.to_dict() for agent in self.selected_agents],
            "usedFallback": self.used_fallback,
            "quietHours": self.quiet_hours,
            "candidates": [candidate.to_dict() for candidate in self.candidates],
            "reasonCodes": [code.value for code in self.reason_codes],
            "slaTimers": [timer.to_dict() for timer in self.sla_timers],
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
        }
        for key, value in (
            ("fallbackTeamId", self.fallback_team_id),
            ("assignedAgentId", self.assigned_agent_id),
            ("ruleId", self.rule_id),
            ("ruleName", self.rule_name),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass
class _RuleOutcome:
    considered: List[Candidate]
    scores: Dict[str, Optional[AgentScore]]
    selected_agents: Tuple[AgentScore, ...] = ()
    assigned: Optional[Candidate] = None
    fallback_team_id: Optional[str] = None
    used_fallback: bool = False
    reason_codes: List[ReasonCode] = field(default_factory=lambda: [ReasonCode.RULE_MATCHED])


class LeadRouter:
    """Route leads through an ordered list of rules.

    Rules are validated up front, so a broken rule fails construction instead
    of silently never matching. The router holds no mutable state and can be
    shared between concurrent callers.
    """

    def __init__(
        self,
        rules: Sequence[Union[RoutingRuleDefinition, Dict[str, Any]]],
        candidates: Sequence[CandidateInput],
        config: Union[RoutingConfig, Dict[str, Any], None] = None,
        quiet_hours: Optional[QuietHours] = None,
    ):
        parsed = [
            validate_model(RoutingRuleDefinition, rule, f"RoutingRuleDefinition[{index}]")
            for index, rule in enumerate(rules)
        ]
        # Stable sort: equal priorities keep their configured order
        self.rules: Tuple[RoutingRuleDefinition, ...] = tuple(
            sorted((rule for rule in parsed if rule.enabled), key=lambda rule: rule.priority)
        )
        self.config = validate_model(RoutingConfig, config if config is not None else {})
        self.quiet_hours = quiet_hours

        self.candidates: Dict[str, Candidate] = {}
        for item in candidates:
            candidate = item if isinstance(item, Candidate) else Candidate.from_dict(item)
            if candidate.user_id in self.candidates:
                raise SchemaValidationError(
                    "Candidate", message=f"duplicate agent {candidate.user_id}"
                )
            self.candidates[candidate.user_id] = candidate

        self._team_members: Dict[str, List[Candidate]] = {}
        for candidate in self.candidates.values():
            for team_id in candidate.team_ids:
                self._team_members.setdefault(team_id, []).append(candidate)

    def assign(
        self,
        lead_id: str,
        tenant_id: str,
        context: Union[RoutingContext, Dict[str, Any]],
        quiet_hours: Optional[bool] = None,
    ) -> RouteAssignment:
        """Route a lead with the first matching rule that yields an outcome."""
        if not isinstance(context, RoutingContext):
            context = RoutingContext.from_dict(context)
        if quiet_hours is None:
            quiet_hours = self.quiet_hours.is_active(context.now) if self.quiet_hours else False

        for rule in self.rules:
            evaluation = evaluate_conditions(rule.conditions, context)
            if not evaluation.matched:
                failed = ", ".join(check.key.value for check in evaluation.failed_checks)
                logger.debug(f"Rule {rule.id} did not match lead {lead_id}: failed {failed}")
                continue

            if rule.mode == RoutingMode.FIRST_MATCH:
                outcome = self._apply_first_match(rule)
            else:
                outcome = self._apply_score_and_assign(rule, lead_id, tenant_id, quiet_hours)

            if outcome is None:
                logger.debug(f"Rule {rule.id} matched lead {lead_id} but had no candidates")
                continue

            return self._finalize(rule, evaluation, outcome, context, lead_id, tenant_id, quiet_hours)

        logger.warning(f"No routing rule matched lead {lead_id}")
        return RouteAssignment(
            lead_id=lead_id,
            tenant_id=tenant_id,
            selected_agents=(),
            used_fallback=True,
            quiet_hours=quiet_hours,
            reason_codes=(ReasonCode.NO_RULE_MATCH,),
        )

    def _score(self, candidate: Candidate) -> Optional[AgentScore]:
        return score_agent(candidate.snapshot, self.config)

    def _team_candidates(self, target: TeamTarget) -> List[Candidate]:
        members = self._team_members.get(target.id, [])
        if target.include_roles:
            members = [member for member in members if member.has_role(target.include_roles)]
        return members

    def _pick_team_member(self, target: TeamTarget) -> Optional[Tuple[Candidate, AgentScore]]:
        scored = []
        for member in self._team_candidates(target):
            if not member.is_eligible:
                continue
            score = self._score(member)
            if score is not None:
                scored.append((member, score))
        if not scored:
            return None

        if target.strategy == TeamStrategy.ROUND_ROBIN:
            # Lowest order goes next; unordered members queue behind ordered ones.
            # Equal orders go to the higher score.
            def rotation(entry):
                order = entry[0].snapshot.round_robin_order
                return (order is None, order or 0, -entry[1].score)
            return sorted(scored, key=rotation)[0]

        return sorted(scored, key=lambda entry: entry[1].score, reverse=True)[0]

    def _apply_first_match(self, rule: RoutingRuleDefinition) -> _RuleOutcome:
        considered = list(self.candidates.values())
        outcome = _RuleOutcome(
            considered=considered,
            scores={candidate.user_id: self._score(candidate) for candidate in considered},
            fallback_team_id=rule.fallback.team_id if rule.fallback else None,
        )

        for target in rule.targets:
            if isinstance(target, AgentTarget):
                candidate = self.candidates.get(target.id)
                if candidate is None or not candidate.is_eligible:
                    continue
                score = outcome.scores.get(candidate.user_id)
                if score is None:
                    continue
                outcome.assigned = candidate
                outcome.selected_agents = (score,)
                outcome.reason_codes.append(ReasonCode.DIRECT_AGENT)
                break
            elif isinstance(target, TeamTarget):
                picked = self._pick_team_member(target)
                if picked is None:
                    continue
                outcome.assigned, score = picked
                outcome.selected_agents = (score,)
                outcome.reason_codes.append(
                    ReasonCode.ROUND_ROBIN
                    if target.strategy == TeamStrategy.ROUND_ROBIN
                    else ReasonCode.BEST_FIT
                )
                break
            elif isinstance(target, PondTarget):
                outcome.fallback_team_id = target.id
                outcome.used_fallback = True
                outcome.reason_codes.append(ReasonCode.TEAM_POND)
                break
            else:
                raise TypeError(f"Unsupported routing target: {target!r}")

        if outcome.assigned is None:
            outcome.used_fallback = True
        return outcome

    def _apply_score_and_assign(
        self,
        rule: RoutingRuleDefinition,
        lead_id: str,
        tenant_id: str,
        quiet_hours: bool,
    ) -> Optional[_RuleOutcome]:
        considered: Dict[str, Candidate] = {}
        for target in rule.targets:
            if isinstance(target, AgentTarget):
                candidate = self.candidates.get(target.id)
                if candidate is not None:
                    considered.setdefault(candidate.user_id, candidate)
            elif isinstance(target, TeamTarget):
                for member in self._team_candidates(target):
                    considered.setdefault(member.user_id, member)
            elif isinstance(target, PondTarget):
                # Ponds have no members to score
                continue
            else:
                raise TypeError(f"Unsupported routing target: {target!r}")

        if not considered:
            return None

        result = route_lead(RoutingInput(
            lead_id=lead_id,
            tenant_id=tenant_id,
            agents=[candidate.snapshot for candidate in considered.values()],
            config=self.config,
            fallback_team_id=rule.fallback.team_id if rule.fallback else None,
            quiet_hours=quiet_hours,
        ))

        assigned = None
        if not result.used_fallback and result.selected_agents:
            assigned = considered[result.selected_agents[0].user_id]

        return _RuleOutcome(
            considered=list(considered.values()),
            scores={candidate.user_id: self._score(candidate) for candidate in considered.values()},
            selected_agents=result.selected_agents,
            assigned=assigned,
            fallback_team_id=result.fallback_team_id,
            used_fallback=assigned is None,
        )

    def _decision_candidate(self, candidate: Candidate, outcome: _RuleOutcome) -> DecisionCandidate:
        score = outcome.scores.get(candidate.user_id)
        if outcome.assigned is not None and outcome.assigned.user_id == candidate.user_id:
            status = CandidateStatus.SELECTED
        elif score is not None:
            status = CandidateStatus.REJECTED
        else:
            status = CandidateStatus.DISQUALIFIED

        if status == CandidateStatus.DISQUALIFIED:
            reasons = tuple(candidate.gating_reasons)
        else:
            reasons = tuple(reason.description for reason in score.reasons)

        return DecisionCandidate(
            agent_id=candidate.user_id,
            full_name=candidate.snapshot.full_name,
            status=status,
            score=score.score if score is not None else None,
            reasons=reasons,
            capacity_remaining=candidate.capacity_remaining,
            consent_ready=candidate.snapshot.consent_ready,
            ten_dlc_ready=candidate.snapshot.ten_dlc_ready,
            team_ids=candidate.team_ids,
        )

    def _sla_timers(self, rule: RoutingRuleDefinition, now: datetime) -> Tuple[SlaTimer, ...]:
        timers = []
        if rule.sla_first_touch_minutes:
            timers.append(SlaTimer(
                type=SlaType.FIRST_TOUCH,
                rule_id=rule.id,
                due_at=now + timedelta(minutes=rule.sla_first_touch_minutes),
            ))
        if rule.sla_kept_appointment_minutes:
            timers.append(SlaTimer(
                type=SlaType.KEPT_APPOINTMENT,
                rule_id=rule.id,
                due_at=now + timedelta(minutes=rule.sla_kept_appointment_minutes),
            ))
        return tuple(timers)

    def _finalize(
        self,
        rule: RoutingRuleDefinition,
        evaluation: EvaluationResult,
        outcome: _RuleOutcome,
        context: RoutingContext,
        lead_id: str,
        tenant_id: str,
        quiet_hours: bool,
    ) -> RouteAssignment:
        assigned_id = outcome.assigned.user_id if outcome.assigned else None
        if assigned_id:
            logger.info(f"Assigned lead {lead_id} to {assigned_id} via rule {rule.id} ({rule.mode.value})")
        else:
            logger.warning(
                f"Lead {lead_id} matched rule {rule.id} but fell back to {outcome.fallback_team_id or 'no team'}"
            )

        return RouteAssignment(
            lead_id=lead_id,
            tenant_id=tenant_id,
            selected_agents=outcome.selected_agents,
            used_fallback=outcome.used_fallback,
            quiet_hours=quiet_hours,
            fallback_team_id=outcome.fallback_team_id if outcome.used_fallback else None,
            assigned_agent_id=assigned_id,
            rule_id=rule.id,
            rule_name=rule.name,
            evaluation=evaluation,
            candidates=tuple(self._decision_candidate(c, outcome) for c in outcome.considered),
            reason_codes=tuple(outcome.reason_codes),
            sla_timers=self._sla_timers(rule, context.now),
        )
