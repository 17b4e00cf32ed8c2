"""Prediction, checkpoint and evaluation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from .common import CamelModel


class CheckpointEvaluationResponse(CamelModel):
    """Stored outcome of one checkpoint."""

    price: float
    return_pct: float
    direction: str = Field(..., examples=["UP", "DOWN", "FLAT"])
    directional_accuracy: bool
    evaluated_at: datetime


class EvaluateRequest(CamelModel):
    prediction_id: int = Field(..., ge=1)
    checkpoint: str = Field(..., examples=["5d", "10d", "20d"])

    @field_validator("checkpoint")
    @classmethod
    def normalize_checkpoint(cls, v: str) -> str:
        return v.strip().lower()


class EvaluationResultResponse(CamelModel):
    prediction_id: int
    ticker: str
    checkpoint: str
    success: bool
    evaluation: Optional[CheckpointEvaluationResponse] = None
    error: Optional[str] = None


class CheckpointStatusResponse(CamelModel):
    type: str
    status: str = Field(..., examples=["pending", "ready", "evaluated"])
    days_remaining: int
    days_elapsed: int
    evaluation: Optional[CheckpointEvaluationResponse] = None


class PredictionSummaryResponse(CamelModel):
    prediction_id: int
    ticker: str
    checkpoints: list[CheckpointStatusResponse]
    primary_complete: bool
    all_complete: bool


class DailyEvaluationStats(CamelModel):
    total: int
    evaluated: int
    skipped: int
    errors: int
    accuracy: str = Field(..., examples=["62.5%", "N/A"])


class DailyEvaluationResponse(CamelModel):
    message: str
    stats: DailyEvaluationStats
    evaluated: list[dict[str, Any]] = Field(default_factory=list)
    skipped: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)


class AgentPerformanceResponse(CamelModel):
    agent_name: str
    total_predictions: int
    correct_predictions: int
    accuracy_rate: Optional[float] = None
    avg_score: Optional[float] = None
    calculated_at: datetime


class EvaluationStatsResponse(CamelModel):
    """Checkpoint counts across all live predictions."""

    message: str
    stats: dict[str, int]
    agent_performance: list[AgentPerformanceResponse] = Field(default_factory=list)


class EvaluationOverviewResponse(CamelModel):
    """Checkpoint summaries for every live prediction."""

    summaries: list[PredictionSummaryResponse]
    stats: dict[str, int]
