"""
Finnhub news and analyst-action feed.

Implements the ``NewsFeed`` protocol used by catalyst detection on top of the
Finnhub REST API (``/company-news`` and ``/stock/upgrade-downgrade``).

Usage:
    from catalystwatch.services.finnhub import get_finnhub_client

    feed = get_finnhub_client()
    articles = await feed.get_company_news("AAPL", days_back=2)
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import httpx

from catalystwatch.catalysts.classifier import NewsArticle, RatingChange, analyze_sentiment
from catalystwatch.core.config import settings
from catalystwatch.core.exceptions import ExternalServiceError
from catalystwatch.core.logging import get_logger


logger = get_logger("services.finnhub")


def _from_epoch(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _to_grade_date(value: Any) -> datetime | None:
    """Finnhub grade times are epoch seconds; only the calendar date is meaningful."""
    moment = _from_epoch(value)
    if moment is None:
        return None
    return datetime(moment.year, moment.month, moment.day, tzinfo=UTC)


def parse_article(raw: dict[str, Any]) -> NewsArticle:
    headline = raw.get("headline") or ""
    summary = raw.get("summary") or ""
    return NewsArticle(
        headline=headline,
        summary=summary,
        source=raw.get("source") or "",
        url=raw.get("url") or "",
        published_at=_from_epoch(raw.get("datetime")),
        sentiment=analyze_sentiment(headline, summary),
    )


def parse_rating_change(raw: dict[str, Any]) -> RatingChange:
    return RatingChange(
        company=raw.get("company") or "",
        action=raw.get("action") or "",
        from_grade=raw.get("fromGrade") or "",
        to_grade=raw.get("toGrade") or "",
        graded_at=_to_grade_date(raw.get("gradeTime")),
    )


class FinnhubClient:
    """Thin async wrapper over the Finnhub endpoints catalyst detection needs."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: Optional[float] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.finnhub_api_key
        self._base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else float(settings.external_api_timeout)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _request(self, endpoint: str, params: dict[str, str]) -> Any:
        if not self._api_key:
            raise ExternalServiceError(
                message="FINNHUB_API_KEY not configured",
                error_code="FINNHUB_NOT_CONFIGURED",
            )

        query = {**params, "token": self._api_key}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(f"{self._base_url}{endpoint}", params=query)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling Finnhub {endpoint}")
            raise ExternalServiceError(message=f"Finnhub timeout on {endpoint}") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(message=f"Finnhub request failed: {e}") from e

        if response.status_code != 200:
            raise ExternalServiceError(
                message=f"Finnhub API error: {response.status_code} {response.reason_phrase}",
                details={"endpoint": endpoint, "status": response.status_code},
            )
        return response.json()

    async def get_company_news(self, ticker: str, days_back: int = 7) -> list[NewsArticle]:
        today = datetime.now(UTC).date()
        params = {
            "symbol": ticker.upper(),
            "from": (today - timedelta(days=days_back)).isoformat(),
            "to": today.isoformat(),
        }
        data = await self._request("/company-news", params) or []
        articles = [parse_article(item) for item in data[: settings.finnhub_news_limit]]
        logger.debug(f"Fetched {len(articles)} articles for {ticker}")
        return articles

    async def get_upgrades(self, ticker: str) -> list[RatingChange]:
        data = await self._request("/stock/upgrade-downgrade", {"symbol": ticker.upper()}) or []
        return [parse_rating_change(item) for item in data[: settings.finnhub_upgrades_limit]]


# =============================================================================
# SINGLETON
# =============================================================================

_finnhub_client: FinnhubClient | None = None


def get_finnhub_client() -> FinnhubClient:
    """Get singleton FinnhubClient instance."""
    global _finnhub_client
    if _finnhub_client is None:
        _finnhub_client = FinnhubClient()
    return _finnhub_client
