"""Catalyst trigger gates: decide whether a catalyst is worth a full re-analysis.

Each re-analysis costs six model calls, so a catalyst has to get through five
sequential gates before one is paid for:

    1. Urgency            HIGH or CRITICAL only
    2. Boundary proximity score within 10 points of +/-30 (CRITICAL overrides)
    3. Predicted impact   |impact| >= proximity (CRITICAL overrides)
    4. Cooldown           >= 6h since last analysis (CRITICAL overrides) and
                          fewer than 3 catalyst-triggered re-analyses in 24h
    5. Confidence         >85% confidence needs |impact| >= 8 (CRITICAL overrides)

The pipeline stops at the first failure. Every gate that ran is recorded in
``gate_results``, which is what operators read to understand a skip.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from catalystwatch.core.logging import get_logger
from catalystwatch.domain.catalysts import EventType, Urgency, estimate_catalyst_impact
from catalystwatch.domain.models import CurrentRecommendation
from catalystwatch.domain.scoring import calculate_boundary_proximity


logger = get_logger("catalysts.triggers")

BOUNDARY_PROXIMITY_MAX = 10
COOLDOWN_HOURS = 6
MAX_REANALYSES_PER_DAY = 3
CONFIDENCE_RESISTANCE_PCT = 85
CONFIDENCE_MIN_IMPACT = 8

GATE_BOOTSTRAP = "NoExistingAnalysis"
GATE_URGENCY = "Gate1_Urgency"
GATE_PROXIMITY = "Gate2_BoundaryProximity"
GATE_IMPACT = "Gate3_PredictedImpact"
GATE_COOLDOWN = "Gate4_Cooldown"
GATE_CONFIDENCE = "Gate5_Confidence"

GetCurrentRecommendation = Callable[[int], Awaitable[CurrentRecommendation | None]]
GetReanalysisCount = Callable[[int], Awaitable[int]]


@dataclass(frozen=True)
class GateResult:
    gate: str
    passed: bool
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"gate": self.gate, "passed": self.passed, "reason": self.reason}


@dataclass
class TriggerDecision:
    should_trigger: bool
    skip_reason: str | None = None
    gate_results: list[GateResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "shouldTrigger": self.should_trigger,
            "skipReason": self.skip_reason,
            "gateResults": [g.to_dict() for g in self.gate_results],
        }


def _fmt(value: float) -> str:
    return f"{value:g}"


# =============================================================================
# GATES
# =============================================================================


def check_urgency(urgency: Urgency) -> GateResult:
    if urgency in (Urgency.LOW, Urgency.MEDIUM):
        return GateResult(GATE_URGENCY, False, f"Urgency too low ({urgency.value})")
    return GateResult(GATE_URGENCY, True, "Urgency HIGH or CRITICAL")


def check_boundary_proximity(score: float, urgency: Urgency) -> GateResult:
    proximity = calculate_boundary_proximity(score)
    if proximity > BOUNDARY_PROXIMITY_MAX and urgency != Urgency.CRITICAL:
        return GateResult(
            GATE_PROXIMITY,
            False,
            f"Score {_fmt(score)} too far from boundary ({_fmt(proximity)} points)",
        )
    return GateResult(
        GATE_PROXIMITY, True, f"Score {_fmt(score)} near boundary ({_fmt(proximity)} points)"
    )


def check_predicted_impact(
    event_type: EventType, urgency: Urgency, boundary_proximity: float
) -> GateResult:
    impact = abs(estimate_catalyst_impact(event_type, urgency))
    if impact < boundary_proximity and urgency != Urgency.CRITICAL:
        return GateResult(
            GATE_IMPACT,
            False,
            f"Impact {impact:.1f} insufficient to reach boundary "
            f"({_fmt(boundary_proximity)} points away)",
        )
    return GateResult(GATE_IMPACT, True, f"Impact {impact:.1f} could change recommendation")


def check_cooldown(
    last_analyzed_at: datetime,
    reanalysis_count: int,
    urgency: Urgency,
    now: datetime | None = None,
) -> GateResult:
    current = now or datetime.now(UTC)
    if last_analyzed_at.tzinfo is None:
        last_analyzed_at = last_analyzed_at.replace(tzinfo=UTC)
    hours_since = (current - last_analyzed_at).total_seconds() / 3600

    if hours_since < COOLDOWN_HOURS and urgency != Urgency.CRITICAL:
        return GateResult(
            GATE_COOLDOWN, False, f"Cooldown active ({hours_since:.1f}h since last analysis)"
        )

    # Hard cap, CRITICAL does not override it
    if reanalysis_count >= MAX_REANALYSES_PER_DAY:
        return GateResult(
            GATE_COOLDOWN,
            False,
            f"Daily limit reached ({reanalysis_count} re-analyses in 24h)",
        )

    return GateResult(GATE_COOLDOWN, True, "Cooldown passed")


def check_confidence(confidence_pct: int, impact: float, urgency: Urgency) -> GateResult:
    if confidence_pct > CONFIDENCE_RESISTANCE_PCT and urgency != Urgency.CRITICAL:
        if abs(impact) < CONFIDENCE_MIN_IMPACT:
            return GateResult(
                GATE_CONFIDENCE,
                False,
                f"High confidence ({confidence_pct}%) resists weak catalyst",
            )
    return GateResult(GATE_CONFIDENCE, True, f"Confidence {confidence_pct}% allows re-analysis")


# =============================================================================
# PIPELINE
# =============================================================================


async def evaluate_catalyst_trigger(
    stock_id: int,
    event_type: EventType,
    urgency: Urgency,
    get_current_recommendation: GetCurrentRecommendation,
    get_reanalysis_count: GetReanalysisCount,
    now: datetime | None = None,
) -> TriggerDecision:
    """Run the gate pipeline for one catalyst of one stock.

    A stock with no prediction yet is analyzed unconditionally; the single
    audit entry records that bootstrap. The re-analysis count is only read
    when gate 4 is actually reached.
    """
    current = await get_current_recommendation(stock_id)
    if current is None:
        return TriggerDecision(
            should_trigger=True,
            gate_results=[
                GateResult(
                    GATE_BOOTSTRAP, True, "No prior analysis found - trigger first analysis"
                )
            ],
        )

    results: list[GateResult] = []

    def _stop(result: GateResult) -> TriggerDecision | None:
        results.append(result)
        if result.passed:
            return None
        return TriggerDecision(should_trigger=False, skip_reason=result.reason, gate_results=results)

    decision = _stop(check_urgency(urgency))
    if decision:
        return decision

    proximity = calculate_boundary_proximity(current.score)
    decision = _stop(check_boundary_proximity(current.score, urgency))
    if decision:
        return decision

    decision = _stop(check_predicted_impact(event_type, urgency, proximity))
    if decision:
        return decision

    reanalysis_count = await get_reanalysis_count(stock_id)
    decision = _stop(check_cooldown(current.last_analyzed_at, reanalysis_count, urgency, now))
    if decision:
        return decision

    impact = estimate_catalyst_impact(event_type, urgency)
    decision = _stop(check_confidence(current.confidence_pct, impact, urgency))
    if decision:
        return decision

    return TriggerDecision(should_trigger=True, gate_results=results)
