"""Pydantic request/response schemas."""

from .catalysts import (
    CatalystEventResponse,
    CatalystMonitorResponse,
    CatalystMonitorStatus,
    CatalystScanResponse,
)
from .common import CamelModel, ErrorResponse, HealthResponse, MessageResponse
from .predictions import (
    DailyEvaluationResponse,
    EvaluateRequest,
    EvaluationResultResponse,
    EvaluationStatsResponse,
    PredictionSummaryResponse,
)
from .stocks import (
    AnalyzeResponse,
    StockCreate,
    StockDetailResponse,
    StockListItem,
    StockResponse,
)


__all__ = [
    "AnalyzeResponse",
    "CamelModel",
    "CatalystEventResponse",
    "CatalystMonitorResponse",
    "CatalystMonitorStatus",
    "CatalystScanResponse",
    "DailyEvaluationResponse",
    "ErrorResponse",
    "EvaluateRequest",
    "EvaluationResultResponse",
    "EvaluationStatsResponse",
    "HealthResponse",
    "MessageResponse",
    "PredictionSummaryResponse",
    "StockCreate",
    "StockDetailResponse",
    "StockListItem",
    "StockResponse",
]
