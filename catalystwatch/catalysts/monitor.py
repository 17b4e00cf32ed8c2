"""Catalyst monitor: one gate decision per stock, disposition on every catalyst."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from catalystwatch.core.config import settings
from catalystwatch.core.logging import get_logger
from catalystwatch.domain.models import (
    AnalysisOutcome,
    CurrentRecommendation,
    PendingCatalyst,
)

from .detection import DetectionResult, DetectionStore, NewsFeed, detect_all_catalysts
from .triggers import GateResult, evaluate_catalyst_trigger


logger = get_logger("catalysts.monitor")

DEFAULT_SKIP_REASON = "Gate check failed"
REANALYSIS_REASON_PREFIX = "Catalyst-triggered"

RunFullAnalysis = Callable[[str], Awaitable[AnalysisOutcome]]


class CatalystStore(Protocol):
    """Persistence the monitor needs; the ORM implementation lives in repositories."""

    async def get_pending_catalysts(self, since: datetime) -> list[PendingCatalyst]: ...

    async def get_current_recommendation(self, stock_id: int) -> CurrentRecommendation | None: ...

    async def get_reanalysis_count_24h(self, stock_id: int) -> int: ...

    async def log_catalyst_skip(self, catalyst_ids: list[int], reason: str) -> None: ...

    async def mark_catalysts_triggered(self, catalyst_ids: list[int]) -> None: ...

    async def record_reanalysis(
        self, stock_id: int, new_recommendation: str, new_score: float, change_reason: str
    ) -> None: ...


@dataclass
class StockProcessing:
    ticker: str
    triggered: bool
    skip_reason: str | None
    gate_results: list[GateResult]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "triggered": self.triggered,
            "skipReason": self.skip_reason,
            "gateResults": [g.to_dict() for g in self.gate_results],
        }


@dataclass
class MonitorResult:
    message: str = ""
    catalysts_found: int = 0
    processed: list[StockProcessing] = field(default_factory=list)
    reanalyzed: list[str] = field(default_factory=list)
    skipped: list[dict[str, str]] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)
    deferred: int = 0
    cost_saved: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "catalystsFound": self.catalysts_found,
            "processed": [p.to_dict() for p in self.processed],
            "reanalyzed": self.reanalyzed,
            "skipped": self.skipped,
            "failed": self.failed,
            "deferred": self.deferred,
            "costSaved": round(self.cost_saved, 2),
        }


def group_by_stock(catalysts: list[PendingCatalyst]) -> dict[int, list[PendingCatalyst]]:
    """Group active-stock catalysts by stock id, keeping first-seen order."""
    groups: dict[int, list[PendingCatalyst]] = {}
    for catalyst in catalysts:
        if not catalyst.stock_active:
            continue
        groups.setdefault(catalyst.stock_id, []).append(catalyst)
    return groups


def select_representative(catalysts: list[PendingCatalyst]) -> PendingCatalyst:
    """Highest urgency wins; the earliest in the list wins ties."""
    best = catalysts[0]
    for catalyst in catalysts[1:]:
        if catalyst.urgency.rank > best.urgency.rank:
            best = catalyst
    return best


async def _process_stock(
    store: CatalystStore,
    run_full_analysis: RunFullAnalysis,
    stock_id: int,
    catalysts: list[PendingCatalyst],
    result: MonitorResult,
    current: datetime,
) -> None:
    trigger = select_representative(catalysts)
    ticker = trigger.ticker
    catalyst_ids = [c.id for c in catalysts]

    decision = await evaluate_catalyst_trigger(
        stock_id,
        trigger.event_type,
        trigger.urgency,
        store.get_current_recommendation,
        store.get_reanalysis_count_24h,
        now=current,
    )
    result.processed.append(
        StockProcessing(
            ticker=ticker,
            triggered=decision.should_trigger,
            skip_reason=decision.skip_reason,
            gate_results=decision.gate_results,
        )
    )

    if not decision.should_trigger:
        reason = decision.skip_reason or DEFAULT_SKIP_REASON
        await store.log_catalyst_skip(catalyst_ids, reason)
        result.skipped.append({"ticker": ticker, "reason": reason})
        logger.info(
            f"Skipped re-analysis for {ticker}: {reason}",
            extra={
                "ticker": ticker,
                "catalysts": len(catalyst_ids),
                "gate_results": [g.to_dict() for g in decision.gate_results],
            },
        )
        return

    logger.info(
        f"All gates passed for {ticker} - triggering re-analysis",
        extra={"ticker": ticker, "event_type": trigger.event_type.value},
    )
    try:
        outcome = await run_full_analysis(ticker)
    except Exception as e:
        logger.error(f"Re-analysis failed for {ticker}: {e}")
        result.failed.append({"ticker": ticker, "error": str(e) or "Unknown error"})
        return

    if not outcome.success:
        error = outcome.error or "Analysis failed"
        logger.warning(f"Re-analysis failed for {ticker}: {error}")
        result.failed.append({"ticker": ticker, "error": error})
        return

    await store.mark_catalysts_triggered(catalyst_ids)
    types = ", ".join(c.event_type.value for c in catalysts)
    await store.record_reanalysis(
        stock_id,
        new_recommendation=outcome.recommendation or "REANALYZED",
        new_score=outcome.score if outcome.score is not None else 0,
        change_reason=f"{REANALYSIS_REASON_PREFIX}: {types}",
    )
    result.reanalyzed.append(ticker)


async def run_catalyst_monitor(
    store: CatalystStore,
    run_full_analysis: RunFullAnalysis,
    lookback_hours: int | None = None,
    max_stocks: int | None = None,
    now: datetime | None = None,
) -> MonitorResult:
    """Process pending catalysts from the lookback window.

    Skips are recorded on every catalyst of the stock. A failed analysis or
    store call leaves the stock's catalysts pending so the next run retries
    them, and never stops the loop.
    """
    current = now or datetime.now(UTC)
    hours = lookback_hours if lookback_hours is not None else settings.catalyst_lookback_hours
    if max_stocks is None:
        max_stocks = settings.catalyst_max_stocks_per_run

    pending = await store.get_pending_catalysts(current - timedelta(hours=hours))
    result = MonitorResult(catalysts_found=len(pending))

    if not pending:
        result.message = "No new catalysts to process"
        return result

    groups = list(group_by_stock(pending).items())
    if max_stocks is not None and len(groups) > max_stocks:
        result.deferred = len(groups) - max_stocks
        groups = groups[:max_stocks]
        logger.info(
            f"Processing {max_stocks} stocks this run, deferring {result.deferred}",
            extra={"max_stocks": max_stocks, "deferred": result.deferred},
        )

    for stock_id, catalysts in groups:
        ticker = catalysts[0].ticker
        try:
            await _process_stock(store, run_full_analysis, stock_id, catalysts, result, current)
        except Exception as e:
            logger.error(
                f"Error processing catalysts for {ticker}: {e}",
                extra={"ticker": ticker, "catalysts": len(catalysts)},
            )
            result.failed.append({"ticker": ticker, "error": str(e) or "Unknown error"})

    result.cost_saved = len(result.skipped) * settings.reanalysis_cost_usd
    result.message = (
        f"Catalyst monitoring completed. Reanalyzed {len(result.reanalyzed)}, "
        f"skipped {len(result.skipped)} (saved ~${result.cost_saved:.2f})"
    )
    logger.info(
        result.message,
        extra={
            "catalysts_found": result.catalysts_found,
            "failed": len(result.failed),
        },
    )
    return result


@dataclass
class ScanResult:
    detection: DetectionResult
    monitor: MonitorResult

    def to_dict(self) -> dict[str, Any]:
        data = self.monitor.to_dict()
        if self.monitor.catalysts_found == 0:
            data["message"] = "Catalyst scan complete. No new catalysts require processing."
        else:
            data["message"] = (
                f"Scan complete. Detected {self.detection.catalysts_inserted} new events. "
                f"Reanalyzed {len(self.monitor.reanalyzed)}, skipped {len(self.monitor.skipped)} "
                f"(saved ~${self.monitor.cost_saved:.2f})"
            )
        data["detection"] = self.detection.summary()
        return data


async def run_catalyst_scan(
    feed: NewsFeed,
    detection_store: DetectionStore,
    store: CatalystStore,
    run_full_analysis: RunFullAnalysis,
    max_stocks: int | None = None,
) -> ScanResult:
    """Detect fresh catalysts for every active stock, then run the monitor."""
    logger.info("Starting manual catalyst scan")
    detection = await detect_all_catalysts(feed, detection_store)
    monitor = await run_catalyst_monitor(store, run_full_analysis, max_stocks=max_stocks)
    return ScanResult(detection=detection, monitor=monitor)
