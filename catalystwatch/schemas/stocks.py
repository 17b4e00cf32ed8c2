"""Stock, analysis and recommendation schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, field_validator

from catalystwatch.core.security import sanitize_ticker

from .catalysts import CatalystEventResponse
from .common import CamelModel


class StockCreate(CamelModel):
    ticker: str = Field(..., min_length=1, max_length=10, examples=["AAPL"])
    company_name: str = Field(..., min_length=1, max_length=255)
    sector: Optional[str] = Field(None, max_length=100)

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v: str) -> str:
        ticker = sanitize_ticker(v)
        if ticker is None:
            raise ValueError("Ticker must be 1-10 characters of A-Z, 0-9, '.' or '-'")
        return ticker


class StockResponse(CamelModel):
    id: int
    ticker: str
    company_name: str
    sector: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class AgentScoreResponse(CamelModel):
    agent_name: str
    score: Decimal
    weight: Decimal
    reasoning: Optional[str] = None
    key_metrics: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class PredictionResponse(CamelModel):
    id: int
    final_score: Decimal
    recommendation: str
    confidence: str
    holding_period: Optional[str] = None
    debate_summary: Optional[str] = None
    risk_factors: list[str] = Field(default_factory=list)
    urgency: Optional[str] = None
    price_at_prediction: Optional[Decimal] = None
    predicted_at: datetime
    evaluation_5d: Optional[dict[str, Any]] = Field(None, alias="evaluation5d")
    evaluation_10d: Optional[dict[str, Any]] = Field(None, alias="evaluation10d")
    evaluation_20d: Optional[dict[str, Any]] = Field(None, alias="evaluation20d")
    price_at_evaluation: Optional[Decimal] = None
    return_pct: Optional[Decimal] = None
    actual_direction: Optional[str] = None
    directional_accuracy: Optional[bool] = None
    evaluated_at: Optional[datetime] = None


class ReconciliationResponse(CamelModel):
    """Declared recommendation vs the one implied by the score."""

    ai_recommendation: str
    calculated_recommendation: str
    score: float
    has_deviation: bool
    deviation_severity: str = Field(..., examples=["none", "minor", "major"])
    explanation: str


class RecommendationChangeResponse(CamelModel):
    previous_recommendation: Optional[str] = None
    new_recommendation: str
    previous_score: Optional[Decimal] = None
    new_score: Optional[Decimal] = None
    change_reason: str
    changed_at: datetime


class StockListItem(StockResponse):
    prediction: Optional[PredictionResponse] = None
    score_label: Optional[str] = None
    reconciliation: Optional[ReconciliationResponse] = None


class StockDetailResponse(StockResponse):
    prediction: Optional[PredictionResponse] = None
    agent_scores: list[AgentScoreResponse] = Field(default_factory=list)
    catalysts: list[CatalystEventResponse] = Field(default_factory=list)
    recommendation_changes: list[RecommendationChangeResponse] = Field(default_factory=list)
    score_label: Optional[str] = None
    boundary_proximity: Optional[float] = None
    reconciliation: Optional[ReconciliationResponse] = None


class AnalyzeResponse(CamelModel):
    success: bool
    prediction_id: Optional[int] = None
    recommendation: Optional[str] = None
    score: Optional[float] = None
    message: str


class AnalysisFailure(CamelModel):
    ticker: str
    error: str


class WeeklyAnalysisResponse(CamelModel):
    message: str
    total_stocks: int
    analyzed: list[str] = Field(default_factory=list)
    failed: list[AnalysisFailure] = Field(default_factory=list)
