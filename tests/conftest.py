"""Pytest configuration and fixtures.

Collaborators are replaced with in-memory fakes that implement the same
protocols as the SQL-backed stores and the Finnhub feed.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from catalystwatch.catalysts.classifier import CatalystCandidate, NewsArticle, RatingChange
from catalystwatch.domain.catalysts import EventType, Urgency
from catalystwatch.domain.checkpoints import CheckpointEvaluation, CheckpointType
from catalystwatch.domain.models import (
    CurrentRecommendation,
    PendingCatalyst,
    PredictionRecord,
    RecentCatalyst,
    StockRef,
)
from catalystwatch.domain.scoring import Recommendation


NOW = datetime(2026, 3, 10, 15, 0, tzinfo=UTC)


# ============================================================================
# Builders
# ============================================================================


def make_stock(stock_id: int = 1, ticker: str = "AAPL", **kwargs) -> StockRef:
    return StockRef(
        id=stock_id,
        ticker=ticker,
        company_name=kwargs.pop("company_name", f"{ticker} Inc."),
        **kwargs,
    )


def make_pending(
    catalyst_id: int,
    stock_id: int = 1,
    ticker: str = "AAPL",
    event_type: EventType = EventType.EARNINGS_BEAT,
    urgency: Urgency = Urgency.HIGH,
    stock_active: bool = True,
    detected_at: datetime | None = None,
) -> PendingCatalyst:
    return PendingCatalyst(
        id=catalyst_id,
        stock_id=stock_id,
        ticker=ticker,
        stock_active=stock_active,
        event_type=event_type,
        urgency=urgency,
        description=f"{ticker} {event_type.value}",
        detected_at=detected_at or NOW - timedelta(hours=1),
    )


def make_recommendation(
    score: float = 25.0,
    confidence_pct: int = 70,
    hours_ago: float = 12,
    now: datetime = NOW,
) -> CurrentRecommendation:
    return CurrentRecommendation(
        score=score,
        confidence_pct=confidence_pct,
        last_analyzed_at=now - timedelta(hours=hours_ago),
        recommendation=Recommendation.HOLD,
    )


def make_prediction(
    prediction_id: int = 1,
    stock_id: int = 1,
    days_ago: float = 6,
    recommendation: Recommendation = Recommendation.BUY,
    price: float | None = 100.0,
    evaluations: dict[CheckpointType, CheckpointEvaluation] | None = None,
    now: datetime = NOW,
) -> PredictionRecord:
    return PredictionRecord(
        id=prediction_id,
        stock_id=stock_id,
        final_score=45.0,
        recommendation=recommendation,
        confidence="HIGH",
        predicted_at=now - timedelta(days=days_ago),
        price_at_prediction=price,
        evaluations=dict(evaluations or {}),
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeCatalystStore:
    """In-memory store for the catalyst monitor and the detection scan."""

    def __init__(
        self,
        pending: list[PendingCatalyst] | None = None,
        recommendations: dict[int, CurrentRecommendation] | None = None,
        reanalysis_counts: dict[int, int] | None = None,
        stocks: list[StockRef] | None = None,
        recent: list[RecentCatalyst] | None = None,
    ):
        self.pending = list(pending or [])
        self.recommendations = dict(recommendations or {})
        self.reanalysis_counts = dict(reanalysis_counts or {})
        self.stocks = list(stocks or [])
        self.recent = list(recent or [])
        self.skips: list[tuple[list[int], str]] = []
        self.triggered: list[int] = []
        self.history: list[dict] = []
        self.inserted: list[CatalystCandidate] = []
        self.count_calls = 0
        self.since: datetime | None = None

    async def get_pending_catalysts(self, since: datetime) -> list[PendingCatalyst]:
        self.since = since
        return [c for c in self.pending if c.detected_at >= since]

    async def get_current_recommendation(self, stock_id: int) -> CurrentRecommendation | None:
        return self.recommendations.get(stock_id)

    async def get_reanalysis_count_24h(self, stock_id: int) -> int:
        self.count_calls += 1
        return self.reanalysis_counts.get(stock_id, 0)

    async def log_catalyst_skip(self, catalyst_ids: list[int], reason: str) -> None:
        self.skips.append((list(catalyst_ids), reason))

    async def mark_catalysts_triggered(self, catalyst_ids: list[int]) -> None:
        self.triggered.extend(catalyst_ids)

    async def record_reanalysis(
        self, stock_id: int, new_recommendation: str, new_score: float, change_reason: str
    ) -> None:
        self.history.append(
            {
                "stock_id": stock_id,
                "new_recommendation": new_recommendation,
                "new_score": new_score,
                "change_reason": change_reason,
            }
        )

    async def get_active_stocks(self) -> list[StockRef]:
        return [s for s in self.stocks if s.is_active]

    async def get_stock_by_ticker(self, ticker: str) -> StockRef | None:
        return next((s for s in self.stocks if s.ticker == ticker), None)

    async def get_recent_catalysts(self, stock_id: int, since: datetime) -> list[RecentCatalyst]:
        return [r for r in self.recent if r.stock_id == stock_id and r.detected_at >= since]

    async def insert_catalyst(self, candidate: CatalystCandidate, detected_at: datetime) -> bool:
        for existing in self.inserted:
            if (
                existing.stock_id == candidate.stock_id
                and existing.event_type == candidate.event_type
                and existing.description == candidate.description
            ):
                return False
        self.inserted.append(candidate)
        return True


class FakeEvaluationStore:
    """In-memory store with conditional checkpoint writes."""

    def __init__(
        self,
        pairs: list[tuple[PredictionRecord, StockRef]] | None = None,
        outcomes: list | None = None,
    ):
        self.pairs = list(pairs or [])
        self.outcomes = list(outcomes or [])
        self.filled: set[tuple[int, CheckpointType]] = set()
        self.saved: list[tuple[int, CheckpointType, CheckpointEvaluation, bool]] = []
        self.performance: list[tuple[list, datetime, datetime]] = []
        self.fail_save: Exception | None = None

    async def get_predictions_with_stocks(self) -> list[tuple[PredictionRecord, StockRef]]:
        return self.pairs

    async def get_prediction_with_stock(self, prediction_id: int):
        return next(((p, s) for p, s in self.pairs if p.id == prediction_id), None)

    async def save_checkpoint_evaluation(
        self,
        prediction_id: int,
        checkpoint: CheckpointType,
        evaluation: CheckpointEvaluation,
        is_primary: bool,
    ) -> bool:
        if self.fail_save is not None:
            raise self.fail_save
        if (prediction_id, checkpoint) in self.filled:
            return False
        self.filled.add((prediction_id, checkpoint))
        self.saved.append((prediction_id, checkpoint, evaluation, is_primary))
        return True

    async def get_agent_outcomes(self) -> list:
        return self.outcomes

    async def save_agent_performance(self, stats, period_start, period_end) -> None:
        self.performance.append((stats, period_start, period_end))

    async def list_agent_performance(self, limit: int = 6) -> list:
        return []


class FakeNewsFeed:
    """News and analyst actions keyed by ticker; ``failures`` raise per ticker."""

    def __init__(
        self,
        articles: dict[str, list[NewsArticle]] | None = None,
        upgrades: dict[str, list[RatingChange]] | None = None,
        failures: dict[str, Exception] | None = None,
    ):
        self.articles = articles or {}
        self.upgrades = upgrades or {}
        self.failures = failures or {}
        self.news_calls: list[tuple[str, int]] = []

    async def get_company_news(self, ticker: str, days_back: int = 7) -> list[NewsArticle]:
        self.news_calls.append((ticker, days_back))
        if ticker in self.failures:
            raise self.failures[ticker]
        return self.articles.get(ticker, [])

    async def get_upgrades(self, ticker: str) -> list[RatingChange]:
        return self.upgrades.get(ticker, [])


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def catalyst_store() -> FakeCatalystStore:
    return FakeCatalystStore()


@pytest.fixture
def evaluation_store() -> FakeEvaluationStore:
    return FakeEvaluationStore()


@pytest.fixture
def news_feed() -> FakeNewsFeed:
    return FakeNewsFeed()


@pytest.fixture
def api_app():
    """A fresh API app per test, so rate-limit counters never leak."""
    from catalystwatch.api.app import create_api_app

    app = create_api_app()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app) -> Generator[TestClient, None, None]:
    """Create a test client for the API app (no lifespan, no database)."""
    yield TestClient(api_app, raise_server_exceptions=False)
