"""Catalyst monitoring and scan schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field

from .common import CamelModel


class GateResultResponse(CamelModel):
    gate: str = Field(..., examples=["Gate1_Urgency"])
    passed: bool
    reason: str


class StockProcessingResponse(CamelModel):
    """Gate outcome for one stock in a monitor run."""

    ticker: str
    triggered: bool
    skip_reason: Optional[str] = None
    gate_results: list[GateResultResponse] = Field(default_factory=list)


class MonitorFailure(CamelModel):
    ticker: str
    error: str


class MonitorSkip(CamelModel):
    ticker: str
    reason: str


class DetectionSummary(CamelModel):
    stocks_scanned: int
    catalysts_detected: int
    catalysts_inserted: int
    errors: list[str] = Field(default_factory=list)


class CatalystMonitorResponse(CamelModel):
    """Result of one catalyst monitor run."""

    message: str
    catalysts_found: int
    processed: list[StockProcessingResponse] = Field(default_factory=list)
    reanalyzed: list[str] = Field(default_factory=list)
    skipped: list[MonitorSkip] = Field(default_factory=list)
    failed: list[MonitorFailure] = Field(default_factory=list)
    deferred: int = Field(0, description="Stocks left pending by the per-run cap")
    cost_saved: float = Field(..., description="Estimated USD saved by skipped re-analyses")


class CatalystScanResponse(CatalystMonitorResponse):
    """Manual scan: detection followed by a monitor run."""

    detection: DetectionSummary


class CatalystEventResponse(CamelModel):
    id: int
    stock_id: int
    event_type: str
    urgency: str
    impact_on_score: Optional[Decimal] = None
    description: str
    source_url: Optional[str] = None
    detected_at: datetime
    triggered_reanalysis: Optional[bool] = None
    skip_reason: Optional[str] = None


class GateDescription(CamelModel):
    gate: int
    name: str
    rule: str


class GateSystemDescription(CamelModel):
    description: str
    gates: list[GateDescription]
    cost_savings_estimate: str


class CatalystMonitorStatus(CamelModel):
    """GET description of the monitor plus the last day's catalysts."""

    message: str
    status: str
    schedule: dict[str, Any]
    gate_system: GateSystemDescription
    recent_catalysts: list[CatalystEventResponse] = Field(default_factory=list)
