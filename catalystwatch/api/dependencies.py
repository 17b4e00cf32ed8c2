"""API dependencies for bearer checks, rate limiting, and collaborator wiring.

Stores and providers are resolved through dependencies so tests can swap
them with ``app.dependency_overrides``.
"""

from __future__ import annotations

import math
from functools import partial

from fastapi import Header, Request

from catalystwatch.catalysts.monitor import RunFullAnalysis
from catalystwatch.core.config import settings
from catalystwatch.core.exceptions import AuthenticationError, RateLimitError
from catalystwatch.core.rate_limiter import RateLimitConfig, RateLimiter, RateLimitStore
from catalystwatch.core.security import verify_bearer_secret
from catalystwatch.evaluation.service import FetchCurrentPrice
from catalystwatch.repositories.stores import SqlCatalystStore, SqlEvaluationStore
from catalystwatch.services import analysis, prices
from catalystwatch.services.finnhub import FinnhubClient, get_finnhub_client


__all__ = [
    "get_analysis_runner",
    "get_catalyst_store",
    "get_client_ip",
    "get_evaluation_store",
    "get_news_feed",
    "get_price_fetcher",
    "rate_limit_api",
    "rate_limit_strict",
    "require_admin_key",
    "require_cron_secret",
    "require_internal_key",
]


def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request, respecting proxy headers.

    Priority: Cloudflare > X-Forwarded-For > X-Real-IP > Direct
    """
    if cf_ip := request.headers.get("CF-Connecting-IP"):
        return cf_ip.strip()
    if forwarded := request.headers.get("X-Forwarded-For"):
        return forwarded.split(",")[0].strip()
    if real_ip := request.headers.get("X-Real-IP"):
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


# =============================================================================
# BEARER SECRETS
# =============================================================================


def _require_secret(authorization: str | None, secret: str, error_code: str) -> None:
    if not verify_bearer_secret(authorization, secret):
        raise AuthenticationError(message="Unauthorized", error_code=error_code)


async def require_cron_secret(
    authorization: str | None = Header(default=None),
) -> None:
    """Cron endpoints: ``Authorization: Bearer $CRON_SECRET`` when configured."""
    _require_secret(authorization, settings.cron_secret, "INVALID_CRON_SECRET")


async def require_internal_key(
    authorization: str | None = Header(default=None),
) -> None:
    _require_secret(authorization, settings.internal_api_key, "INVALID_API_KEY")


async def require_admin_key(
    authorization: str | None = Header(default=None),
) -> None:
    _require_secret(authorization, settings.admin_api_key, "ADMIN_REQUIRED")


# =============================================================================
# RATE LIMITING
# =============================================================================


def _get_rate_limit_store(request: Request) -> RateLimitStore:
    store = getattr(request.app.state, "rate_limit_store", None)
    if store is None:
        store = RateLimitStore()
        request.app.state.rate_limit_store = store
    return store


def _check_rate_limit(request: Request, max_requests: int, key_prefix: str) -> None:
    if not settings.rate_limit_enabled:
        return

    limiter = RateLimiter(
        _get_rate_limit_store(request),
        RateLimitConfig(
            max_requests=max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        ),
    )
    key = f"{key_prefix}:{request.url.path}:{get_client_ip(request)}"
    result = limiter.check(key)
    if not result.allowed:
        raise RateLimitError(
            message="Too many requests. Please try again later.",
            details={"retry_after": max(1, math.ceil(result.reset_in))},
        )


async def rate_limit_api(request: Request) -> None:
    """Default limit for read endpoints."""
    _check_rate_limit(request, settings.rate_limit_default_requests, "api")


async def rate_limit_strict(request: Request) -> None:
    """Strict limit for endpoints that can start an AI analysis."""
    _check_rate_limit(request, settings.rate_limit_strict_requests, "strict")


# =============================================================================
# COLLABORATORS
# =============================================================================


def get_catalyst_store() -> SqlCatalystStore:
    return SqlCatalystStore()


def get_evaluation_store() -> SqlEvaluationStore:
    return SqlEvaluationStore()


def get_news_feed() -> FinnhubClient:
    return get_finnhub_client()


def get_price_fetcher() -> FetchCurrentPrice:
    return prices.fetch_current_price


def get_analysis_runner() -> RunFullAnalysis:
    """Runner used by catalyst-triggered re-analysis."""
    return partial(analysis.run_full_analysis, change_reason="Catalyst re-analysis")
