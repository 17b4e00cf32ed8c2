"""Tests for catalyst detection over the news feed."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from catalystwatch.catalysts.classifier import NewsArticle, RatingChange
from catalystwatch.catalysts.detection import detect_all_catalysts, detect_catalysts_for_ticker
from catalystwatch.domain.catalysts import EventType, Sentiment
from catalystwatch.domain.models import RecentCatalyst

from conftest import NOW, FakeCatalystStore, FakeNewsFeed, make_stock


EARNINGS = NewsArticle(
    headline="Apple reports Q3 earnings beat",
    url="https://news.test/aapl-earnings",
    sentiment=Sentiment.POSITIVE,
)
LAWSUIT = NewsArticle(headline="Microsoft faces lawsuit over licensing", sentiment=Sentiment.NEGATIVE)


class TestDetectAllCatalysts:
    """Tests for detect_all_catalysts."""

    @pytest.mark.asyncio
    async def test_scans_every_active_stock(self):
        feed = FakeNewsFeed(
            articles={"AAPL": [EARNINGS], "MSFT": [LAWSUIT]},
            upgrades={
                "AAPL": [RatingChange(company="MS", action="upgrade", graded_at=NOW - timedelta(hours=5))]
            },
        )
        store = FakeCatalystStore(
            stocks=[
                make_stock(1, "AAPL"),
                make_stock(2, "MSFT"),
                make_stock(3, "IBM", is_active=False),
            ]
        )

        result = await detect_all_catalysts(feed, store, batch_delay=0, now=NOW)

        assert result.stocks_scanned == 2
        assert result.catalysts_detected == 3
        assert result.catalysts_inserted == 3
        assert {c.event_type for c in store.inserted} == {
            EventType.EARNINGS_BEAT,
            EventType.ANALYST_UPGRADE,
            EventType.LEGAL_ACTION,
        }
        assert [t for t, _ in feed.news_calls] == ["AAPL", "MSFT"]

    @pytest.mark.asyncio
    async def test_feed_failure_is_isolated(self):
        feed = FakeNewsFeed(
            articles={"AAPL": [EARNINGS]},
            failures={"MSFT": RuntimeError("Finnhub API error: 429")},
        )
        store = FakeCatalystStore(stocks=[make_stock(1, "AAPL"), make_stock(2, "MSFT")])

        result = await detect_all_catalysts(feed, store, batch_size=1, batch_delay=0, now=NOW)

        assert result.catalysts_inserted == 1
        assert result.errors == ["MSFT: Finnhub API error: 429"]

    @pytest.mark.asyncio
    async def test_skips_recently_stored_events(self):
        feed = FakeNewsFeed(articles={"AAPL": [EARNINGS]})
        store = FakeCatalystStore(
            stocks=[make_stock()],
            recent=[
                RecentCatalyst(1, "earnings_beat", EARNINGS.headline, NOW - timedelta(hours=2))
            ],
        )
        result = await detect_all_catalysts(feed, store, batch_delay=0, now=NOW)
        assert result.catalysts_detected == 0
        assert store.inserted == []

    @pytest.mark.asyncio
    async def test_store_rejection_counts_as_duplicate(self):
        feed = FakeNewsFeed(articles={"AAPL": [EARNINGS]})
        store = FakeCatalystStore(stocks=[make_stock()])
        store.insert_catalyst = AsyncMock(return_value=False)

        result = await detect_all_catalysts(feed, store, batch_delay=0, now=NOW)

        assert result.catalysts_inserted == 0
        assert result.duplicates_skipped == 1

    @pytest.mark.asyncio
    async def test_insert_error_is_recorded(self):
        feed = FakeNewsFeed(articles={"AAPL": [EARNINGS]})
        store = FakeCatalystStore(stocks=[make_stock()])
        store.insert_catalyst = AsyncMock(side_effect=RuntimeError("connection reset"))

        result = await detect_all_catalysts(feed, store, batch_delay=0, now=NOW)

        assert result.catalysts_inserted == 0
        assert result.errors == ["Error inserting catalyst for AAPL: connection reset"]

    @pytest.mark.asyncio
    async def test_stock_listing_failure(self):
        store = FakeCatalystStore()
        store.get_active_stocks = AsyncMock(side_effect=RuntimeError("db down"))
        result = await detect_all_catalysts(FakeNewsFeed(), store, now=NOW)
        assert result.stocks_scanned == 0
        assert result.errors == ["Failed to fetch stocks: db down"]

    @pytest.mark.asyncio
    async def test_summary_shape(self):
        feed = FakeNewsFeed(articles={"AAPL": [EARNINGS]})
        store = FakeCatalystStore(stocks=[make_stock()])
        result = await detect_all_catalysts(feed, store, batch_delay=0, now=NOW)
        data = result.to_dict()
        assert data["stocksScanned"] == 1
        assert data["catalystsInserted"] == 1
        assert data["detectedEvents"][0]["sourceUrl"] == "https://news.test/aapl-earnings"


class TestDetectForTicker:
    """Tests for detect_catalysts_for_ticker."""

    @pytest.mark.asyncio
    async def test_unknown_ticker(self):
        result = await detect_catalysts_for_ticker("zzzz", FakeNewsFeed(), FakeCatalystStore(), NOW)
        assert result.errors == ["Stock zzzz not found"]

    @pytest.mark.asyncio
    async def test_known_ticker(self):
        feed = FakeNewsFeed(articles={"AAPL": [EARNINGS]})
        store = FakeCatalystStore(stocks=[make_stock()])
        result = await detect_catalysts_for_ticker("aapl", feed, store, NOW)
        assert result.catalysts_inserted == 1
