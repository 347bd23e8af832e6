"""Condition evaluator - decides whether a lead satisfies a rule's conditions."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from ..schemas.base import validate_model
from ..schemas.conditions import (
    BuyerRepRequirement,
    ConsentCondition,
    ConsentRequirement,
    GeographyCondition,
    PriceBandCondition,
    RoutingConditions,
    SourceCondition,
    TimeWindow,
)
from .context import ConsentState, ListingContext, PersonContext, RoutingContext

logger = logging.getLogger(__name__)

DAY_ABBREVIATIONS = ["Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"]

ClauseOutcome = Tuple[bool, Optional[str]]


class ConditionKey(str, Enum):
    """Clause names, in the order they are evaluated."""
    GEOGRAPHY = "geography"
    PRICE_BAND = "priceBand"
    SOURCES = "sources"
    CONSENT = "consent"
    BUYER_REP = "buyerRep"
    TIME_WINDOWS = "timeWindows"


@dataclass(frozen=True)
class ConditionCheck:
    """Outcome of one clause."""

    key: ConditionKey
    passed: bool
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"key": self.key.value, "passed": self.passed}
        if self.detail is not None:
            data["detail"] = self.detail
        return data


@dataclass(frozen=True)
class EvaluationResult:
    """Whether every present clause passed, plus the per-clause trace."""

    matched: bool
    checks: Tuple[ConditionCheck, ...] = ()

    @property
    def failed_checks(self) -> List[ConditionCheck]:
        return [check for check in self.checks if not check.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "checks": [check.to_dict() for check in self.checks],
        }


def resolve_local_time(now: datetime, timezone: str) -> Tuple[int, int]:
    """Return ``(minute_of_day, day_index)`` of ``now`` in ``timezone``.

    ``day_index`` counts from Sunday = 0.
    """
    local = now.astimezone(ZoneInfo(timezone))
    return local.hour * 60 + local.minute, local.isoweekday() % 7


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _match_values(
    label: str,
    value: Optional[str],
    include: Optional[List[str]],
    exclude: Optional[List[str]],
) -> ClauseOutcome:
    """Case-insensitive include/exclude check for one attribute."""
    normalized = value.lower() if value else None

    allowed = [item.lower() for item in include] if include else []
    if allowed and (not normalized or normalized not in allowed):
        return False, f"{label} {normalized or 'unknown'} not in allowed list"

    if exclude and normalized and normalized in [item.lower() for item in exclude]:
        return False, f"{label} {normalized} explicitly excluded"

    return True, None


def match_geography(condition: GeographyCondition, listing: Optional[ListingContext]) -> ClauseOutcome:
    if listing is None:
        return False, "No listing context available for geography matching"

    granularities = [
        ("State", listing.state, condition.include_states, condition.exclude_states),
        ("City", listing.city, condition.include_cities, condition.exclude_cities),
        ("Postal code", listing.postal_code, condition.include_postal_codes, condition.exclude_postal_codes),
    ]
    for label, value, include, exclude in granularities:
        passed, detail = _match_values(label, value, include, exclude)
        if not passed:
            return passed, detail

    return True, None


def match_price_band(condition: PriceBandCondition, listing: Optional[ListingContext]) -> ClauseOutcome:
    price = listing.price if listing is not None else None
    if price is None:
        return False, "Listing price unavailable"
    if condition.min is not None and price < condition.min:
        return False, f"Listing price {_format_number(price)} below minimum {_format_number(condition.min)}"
    if condition.max is not None and price > condition.max:
        return False, f"Listing price {_format_number(price)} above maximum {_format_number(condition.max)}"
    return True, None


def match_source(condition: SourceCondition, person: PersonContext) -> ClauseOutcome:
    return _match_values("Source", person.source, condition.include, condition.exclude)


def match_consent_requirement(
    requirement: Optional[ConsentRequirement],
    state: ConsentState,
    channel: str,
) -> ClauseOutcome:
    if requirement is None or requirement == ConsentRequirement.OPTIONAL:
        return True, None
    if requirement == ConsentRequirement.GRANTED and state != ConsentState.GRANTED:
        return False, f"{channel.upper()} consent must be granted"
    if requirement == ConsentRequirement.NOT_REVOKED and state == ConsentState.REVOKED:
        return False, f"{channel.upper()} consent revoked"
    return True, None


def match_consent(condition: ConsentCondition, person: PersonContext) -> ClauseOutcome:
    sms_passed, sms_detail = match_consent_requirement(condition.sms, person.consent.sms, "sms")
    email_passed, email_detail = match_consent_requirement(condition.email, person.consent.email, "email")
    details = "; ".join(detail for detail in (sms_detail, email_detail) if detail)
    return sms_passed and email_passed, details or None


def match_buyer_rep(requirement: BuyerRepRequirement, status: Optional[str]) -> ClauseOutcome:
    if requirement == BuyerRepRequirement.ANY:
        return True, None

    normalized = status.upper() if status else "UNKNOWN"
    if requirement == BuyerRepRequirement.REQUIRED_ACTIVE and normalized != "ACTIVE":
        return False, "Active buyer representation required"
    if requirement == BuyerRepRequirement.PROHIBIT_ACTIVE and normalized == "ACTIVE":
        return False, "Leads with active buyer representation excluded"
    return True, None


def window_matches(window: TimeWindow, now: datetime) -> bool:
    """Check whether ``now`` falls inside ``window`` (inclusive bounds)."""
    minutes, day_index = resolve_local_time(now, window.timezone)
    if window.days and day_index not in window.days:
        return False

    start, end = window.start_minutes, window.end_minutes
    if start <= end:
        return start <= minutes <= end
    # Overnight window, e.g. 22:00 - 06:00
    return minutes >= start or minutes <= end


def describe_window(window: TimeWindow) -> str:
    days = ", ".join(DAY_ABBREVIATIONS[day] for day in window.days) if window.days else "All days"
    return f"{window.start}-{window.end} {window.timezone} ({days})"


def match_time_windows(windows: List[TimeWindow], now: datetime) -> ClauseOutcome:
    """Pass if ``now`` is inside any of the windows."""
    if any(window_matches(window, now) for window in windows):
        return True, None
    return False, "Outside allowed windows: " + "; ".join(describe_window(w) for w in windows)


def evaluate_conditions(
    conditions: Union[RoutingConditions, Dict[str, Any], None],
    context: Union[RoutingContext, Dict[str, Any]],
) -> EvaluationResult:
    """Evaluate a rule's conditions against a routing context.

    ``None`` conditions always match. Anything else is validated first, so a
    malformed rule raises SchemaValidationError before any clause runs.
    Clauses that are absent are skipped and do not appear in the trace.
    """
    if conditions is None:
        return EvaluationResult(matched=True)

    parsed = validate_model(RoutingConditions, conditions)
    if not isinstance(context, RoutingContext):
        context = RoutingContext.from_dict(context)

    checks: List[ConditionCheck] = []

    def record(key: ConditionKey, outcome: ClauseOutcome):
        passed, detail = outcome
        if not passed:
            logger.debug(f"Condition {key.value} failed: {detail}")
        checks.append(ConditionCheck(key=key, passed=passed, detail=detail))

    if parsed.geography is not None:
        record(ConditionKey.GEOGRAPHY, match_geography(parsed.geography, context.listing))

    if parsed.price_band is not None:
        record(ConditionKey.PRICE_BAND, match_price_band(parsed.price_band, context.listing))

    if parsed.sources is not None:
        record(ConditionKey.SOURCES, match_source(parsed.sources, context.person))

    if parsed.consent is not None:
        record(ConditionKey.CONSENT, match_consent(parsed.consent, context.person))

    if parsed.buyer_rep is not None:
        record(ConditionKey.BUYER_REP, match_buyer_rep(parsed.buyer_rep, context.person.buyer_rep_status))

    if parsed.time_windows:
        record(ConditionKey.TIME_WINDOWS, match_time_windows(parsed.time_windows, context.now))

    return EvaluationResult(
        matched=all(check.passed for check in checks),
        checks=tuple(checks),
    )
