"""Catalyst detection: scan news feeds for active stocks and store new catalysts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from catalystwatch.core.config import settings
from catalystwatch.core.logging import get_logger
from catalystwatch.domain.models import RecentCatalyst, StockRef

from .classifier import (
    DEDUPE_WINDOW,
    CatalystCandidate,
    NewsArticle,
    RatingChange,
    build_candidates,
)


logger = get_logger("catalysts.detection")


class NewsFeed(Protocol):
    async def get_company_news(self, ticker: str, days_back: int = 7) -> list[NewsArticle]: ...

    async def get_upgrades(self, ticker: str) -> list[RatingChange]: ...


class DetectionStore(Protocol):
    async def get_active_stocks(self) -> list[StockRef]: ...

    async def get_stock_by_ticker(self, ticker: str) -> StockRef | None: ...

    async def get_recent_catalysts(self, stock_id: int, since: datetime) -> list[RecentCatalyst]: ...

    async def insert_catalyst(self, candidate: CatalystCandidate, detected_at: datetime) -> bool:
        """Store a candidate; False when the store rejected it as a duplicate."""
        ...


@dataclass
class DetectionResult:
    stocks_scanned: int = 0
    catalysts_detected: int = 0
    catalysts_inserted: int = 0
    duplicates_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    detected_events: list[CatalystCandidate] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {
            "stocksScanned": self.stocks_scanned,
            "catalystsDetected": self.catalysts_detected,
            "catalystsInserted": self.catalysts_inserted,
            "errors": self.errors,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.summary(),
            "duplicatesSkipped": self.duplicates_skipped,
            "detectedEvents": [c.to_dict() for c in self.detected_events],
        }


async def detect_catalysts_for_stock(
    stock: StockRef,
    feed: NewsFeed,
    store: DetectionStore,
    now: datetime | None = None,
    errors: list[str] | None = None,
) -> list[CatalystCandidate]:
    """Fetch news and analyst actions for one stock and classify them.

    Feed failures are logged and produce no candidates for the stock.
    """
    current = now or datetime.now(UTC)
    try:
        articles = await feed.get_company_news(stock.ticker, settings.news_lookback_days)
        upgrades = await feed.get_upgrades(stock.ticker)
        recent = await store.get_recent_catalysts(stock.id, current - DEDUPE_WINDOW)
    except Exception as e:
        logger.warning(f"Error detecting catalysts for {stock.ticker}: {e}")
        if errors is not None:
            errors.append(f"{stock.ticker}: {e}")
        return []

    return build_candidates(stock.id, stock.ticker, articles, upgrades, recent, current)


async def _insert_all(
    result: DetectionResult, store: DetectionStore, detected_at: datetime
) -> None:
    for candidate in result.detected_events:
        try:
            inserted = await store.insert_catalyst(candidate, detected_at)
        except Exception as e:
            logger.error(f"Error inserting catalyst for {candidate.ticker}: {e}")
            result.errors.append(f"Error inserting catalyst for {candidate.ticker}: {e}")
            continue
        if inserted:
            result.catalysts_inserted += 1
        else:
            result.duplicates_skipped += 1


async def detect_all_catalysts(
    feed: NewsFeed,
    store: DetectionStore,
    batch_size: int | None = None,
    batch_delay: float | None = None,
    now: datetime | None = None,
) -> DetectionResult:
    """Scan every active stock in small concurrent batches and store the results."""
    current = now or datetime.now(UTC)
    size = batch_size or settings.detection_batch_size
    delay = settings.detection_batch_delay_seconds if batch_delay is None else batch_delay
    result = DetectionResult()

    try:
        stocks = await store.get_active_stocks()
    except Exception as e:
        logger.error(f"Failed to fetch stocks: {e}")
        result.errors.append(f"Failed to fetch stocks: {e}")
        return result

    result.stocks_scanned = len(stocks)

    for start in range(0, len(stocks), size):
        batch = stocks[start:start + size]
        batch_results = await asyncio.gather(
            *(detect_catalysts_for_stock(s, feed, store, current, result.errors) for s in batch)
        )
        for candidates in batch_results:
            result.detected_events.extend(candidates)

        if start + size < len(stocks) and delay > 0:
            await asyncio.sleep(delay)

    result.catalysts_detected = len(result.detected_events)
    await _insert_all(result, store, current)

    logger.info(
        f"Catalyst detection complete: {result.catalysts_inserted} new catalysts",
        extra={
            "stocks_scanned": result.stocks_scanned,
            "catalysts_detected": result.catalysts_detected,
            "duplicates_skipped": result.duplicates_skipped,
        },
    )
    return result


async def detect_catalysts_for_ticker(
    ticker: str,
    feed: NewsFeed,
    store: DetectionStore,
    now: datetime | None = None,
) -> DetectionResult:
    current = now or datetime.now(UTC)
    result = DetectionResult(stocks_scanned=1)

    stock = await store.get_stock_by_ticker(ticker.upper())
    if stock is None:
        result.errors.append(f"Stock {ticker} not found")
        return result

    result.detected_events = await detect_catalysts_for_stock(
        stock, feed, store, current, result.errors
    )
    result.catalysts_detected = len(result.detected_events)
    await _insert_all(result, store, current)
    return result

