"""Pure domain logic: scoring thresholds, catalyst taxonomy, checkpoint math."""

from .catalysts import (
    CATALYST_IMPACT,
    URGENCY_MULTIPLIER,
    EventType,
    Sentiment,
    Urgency,
    estimate_catalyst_impact,
)
from .checkpoints import (
    CHECKPOINT_CONFIGS,
    CheckpointEvaluation,
    CheckpointStatusValue,
    CheckpointType,
    Direction,
)
from .models import (
    AnalysisOutcome,
    CurrentRecommendation,
    PendingCatalyst,
    PredictionRecord,
    RecentCatalyst,
    StockRef,
)
from .scoring import (
    Confidence,
    DeviationSeverity,
    Recommendation,
    RecommendationReconciliation,
    ScoreLabel,
    calculate_boundary_proximity,
    calculate_recommendation,
    get_score_label,
    is_near_boundary,
    parse_confidence,
    reconcile_recommendation,
)


__all__ = [
    "AnalysisOutcome",
    "CATALYST_IMPACT",
    "CHECKPOINT_CONFIGS",
    "URGENCY_MULTIPLIER",
    "CheckpointEvaluation",
    "CheckpointStatusValue",
    "CheckpointType",
    "Confidence",
    "CurrentRecommendation",
    "DeviationSeverity",
    "Direction",
    "EventType",
    "PendingCatalyst",
    "PredictionRecord",
    "RecentCatalyst",
    "Recommendation",
    "RecommendationReconciliation",
    "ScoreLabel",
    "Sentiment",
    "StockRef",
    "Urgency",
    "calculate_boundary_proximity",
    "calculate_recommendation",
    "estimate_catalyst_impact",
    "get_score_label",
    "is_near_boundary",
    "parse_confidence",
    "reconcile_recommendation",
]
