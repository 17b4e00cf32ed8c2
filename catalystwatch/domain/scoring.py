"""Recommendation thresholds: the single source of truth for scoring.

Every consumer that needs to turn a consensus score (scale -100 to +100)
into a categorical call imports from here: the analysis synthesis, the
catalyst gate engine and the API's reconciliation signal.

    score > +30   BUY   / BULLISH
    score < -30   SELL  / BEARISH
    otherwise     HOLD  / NEUTRAL
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Recommendation(str, Enum):
    """Categorical call derived from (or declared alongside) a score."""

    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"


class ScoreLabel(str, Enum):
    """Display vocabulary for the same score buckets."""

    BULLISH = "BULLISH"
    NEUTRAL = "NEUTRAL"
    BEARISH = "BEARISH"


class Confidence(str, Enum):
    """Confidence declared by the synthesis step."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def percent(self) -> int:
        return CONFIDENCE_PERCENT[self]


class DeviationSeverity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MAJOR = "major"


BUY_MIN = 30.0
SELL_MAX = -30.0

# Boundaries a score can cross to flip its recommendation
RECOMMENDATION_BOUNDARIES: tuple[float, ...] = (SELL_MAX, BUY_MIN)

CONFIDENCE_PERCENT: dict[Confidence, int] = {
    Confidence.LOW: 55,
    Confidence.MEDIUM: 70,
    Confidence.HIGH: 85,
}
DEFAULT_CONFIDENCE_PERCENT = 70

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def calculate_recommendation(score: float) -> Recommendation:
    """Map a consensus score to BUY / HOLD / SELL."""
    if score > BUY_MIN:
        return Recommendation.BUY
    if score < SELL_MAX:
        return Recommendation.SELL
    return Recommendation.HOLD


def get_score_label(score: float) -> ScoreLabel:
    """Map a score to BULLISH / NEUTRAL / BEARISH (same boundaries)."""
    if score > BUY_MIN:
        return ScoreLabel.BULLISH
    if score < SELL_MAX:
        return ScoreLabel.BEARISH
    return ScoreLabel.NEUTRAL


def calculate_boundary_proximity(score: float) -> float:
    """Distance from ``score`` to the nearest recommendation boundary."""
    return min(abs(score - boundary) for boundary in RECOMMENDATION_BOUNDARIES)


def is_near_boundary(score: float, threshold: float = 10) -> bool:
    return calculate_boundary_proximity(score) <= threshold


def parse_confidence(value: Confidence | str | int | float | None) -> int:
    """Normalize a stored confidence into a percentage.

    Accepts the enum, its name in any case ("high"), a literal percentage
    ("90%", "90") or a number. Anything unparseable falls back to 70.
    """
    if value is None:
        return DEFAULT_CONFIDENCE_PERCENT
    if isinstance(value, Confidence):
        return value.percent
    if isinstance(value, (int, float)):
        return int(value)

    text = str(value).strip()
    try:
        return Confidence(text.upper()).percent
    except ValueError:
        pass

    match = _LEADING_INT.match(text.replace("%", ""))
    if match is None:
        return DEFAULT_CONFIDENCE_PERCENT
    return int(match.group(1))


@dataclass(frozen=True)
class RecommendationReconciliation:
    """Outcome of comparing a model-declared call with the score-implied one."""

    ai_recommendation: Recommendation
    calculated_recommendation: Recommendation
    score: float
    has_deviation: bool
    deviation_severity: DeviationSeverity
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "aiRecommendation": self.ai_recommendation.value,
            "calculatedRecommendation": self.calculated_recommendation.value,
            "score": self.score,
            "hasDeviation": self.has_deviation,
            "deviationSeverity": self.deviation_severity.value,
            "explanation": self.explanation,
        }


def reconcile_recommendation(
    score: float,
    ai_recommendation: Recommendation | str,
) -> RecommendationReconciliation:
    """Flag disagreement between a declared recommendation and the score.

    Severity is categorical: ``major`` only for BUY vs SELL, ``minor`` for
    adjacent buckets (BUY/HOLD, HOLD/SELL), ``none`` when they agree. The
    score's magnitude never changes the severity.
    """
    ai_rec = Recommendation(ai_recommendation)
    calculated = calculate_recommendation(score)
    has_deviation = ai_rec != calculated

    severity = DeviationSeverity.NONE
    explanation = ""
    if has_deviation:
        if {ai_rec, calculated} == {Recommendation.BUY, Recommendation.SELL}:
            severity = DeviationSeverity.MAJOR
            explanation = (
                f"AI recommends {ai_rec.value} but score {score:g} "
                f"indicates {calculated.value}"
            )
        else:
            severity = DeviationSeverity.MINOR
            explanation = (
                f"AI recommends {ai_rec.value}, score {score:g} "
                f"suggests {calculated.value}"
            )

    return RecommendationReconciliation(
        ai_recommendation=ai_rec,
        calculated_recommendation=calculated,
        score=score,
        has_deviation=has_deviation,
        deviation_severity=severity,
        explanation=explanation,
    )
