"""Plain value objects passed between repositories and domain logic.

These keep the gate engine, monitor and checkpoint evaluator independent
of the ORM: repositories convert rows into these at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .catalysts import EventType, Urgency
from .checkpoints import CheckpointEvaluation, CheckpointType
from .scoring import Recommendation


@dataclass(frozen=True)
class StockRef:
    id: int
    ticker: str
    company_name: str
    sector: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class CurrentRecommendation:
    """The stock's live prediction state, as the gate engine sees it.

    ``confidence_pct`` is already normalized by ``parse_confidence``.
    """

    score: float
    confidence_pct: int
    last_analyzed_at: datetime
    recommendation: Recommendation


@dataclass(frozen=True)
class PendingCatalyst:
    """A catalyst awaiting a re-analysis decision."""

    id: int
    stock_id: int
    ticker: str
    stock_active: bool
    event_type: EventType
    urgency: Urgency
    description: str
    detected_at: datetime


@dataclass(frozen=True)
class RecentCatalyst:
    """Minimal view of a stored catalyst, used for deduplication."""

    stock_id: int
    event_type: str
    description: str
    detected_at: datetime


@dataclass
class PredictionRecord:
    id: int
    stock_id: int
    final_score: float
    recommendation: Recommendation
    confidence: str
    predicted_at: datetime
    price_at_prediction: float | None
    evaluations: dict[CheckpointType, CheckpointEvaluation | None] = field(default_factory=dict)

    def evaluation_for(self, checkpoint: CheckpointType) -> CheckpointEvaluation | None:
        return self.evaluations.get(checkpoint)


@dataclass(frozen=True)
class AnalysisOutcome:
    """Result of one full multi-agent analysis run."""

    success: bool
    prediction_id: int | None = None
    recommendation: str | None = None
    score: float | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "predictionId": self.prediction_id,
            "recommendation": self.recommendation,
            "score": self.score,
            "error": self.error,
        }
