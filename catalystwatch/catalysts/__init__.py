"""Catalyst detection, classification, trigger gates and monitoring."""

from .classifier import (
    CatalystCandidate,
    NewsArticle,
    RatingChange,
    analyze_sentiment,
    classify_article,
    classify_rating_change,
)
from .detection import DetectionResult, detect_all_catalysts, detect_catalysts_for_ticker
from .monitor import MonitorResult, ScanResult, run_catalyst_monitor, run_catalyst_scan
from .triggers import GateResult, TriggerDecision, evaluate_catalyst_trigger


__all__ = [
    "CatalystCandidate",
    "DetectionResult",
    "GateResult",
    "MonitorResult",
    "NewsArticle",
    "RatingChange",
    "ScanResult",
    "TriggerDecision",
    "analyze_sentiment",
    "classify_article",
    "classify_rating_change",
    "detect_all_catalysts",
    "detect_catalysts_for_ticker",
    "evaluate_catalyst_trigger",
    "run_catalyst_monitor",
    "run_catalyst_scan",
]
