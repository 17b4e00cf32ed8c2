"""Tests for bearer checks, ticker sanitization and rate limiting."""

import pytest

from catalystwatch.core.rate_limiter import RateLimitConfig, RateLimiter, RateLimitStore
from catalystwatch.core.security import (
    extract_bearer_token,
    sanitize_ticker,
    validate_tickers,
    verify_bearer_secret,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestBearerSecret:
    """Tests for Authorization header checks."""

    def test_extract(self):
        assert extract_bearer_token("Bearer abc123") == "abc123"
        assert extract_bearer_token("bearer abc123") == "abc123"
        assert extract_bearer_token("Basic abc123") is None
        assert extract_bearer_token("Bearer") is None
        assert extract_bearer_token(None) is None

    def test_matching_secret(self):
        assert verify_bearer_secret("Bearer s3cret", "s3cret") is True

    def test_wrong_or_missing_secret(self):
        assert verify_bearer_secret("Bearer nope", "s3cret") is False
        assert verify_bearer_secret(None, "s3cret") is False

    def test_unconfigured_secret_allows_all(self):
        assert verify_bearer_secret(None, "") is True


class TestTickers:
    """Tests for ticker sanitization."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("aapl", "AAPL"),
            ("brk.a", "BRK.A"),
            ("bf-b", "BF-B"),
            (" ms ft ", "MSFT"),
            ("$$$", None),
            ("", None),
            (None, None),
            ("ABCDEFGHIJK", None),
        ],
    )
    def test_sanitize(self, raw, expected):
        assert sanitize_ticker(raw) == expected

    def test_validate_list(self):
        assert validate_tickers("aapl, msft,,$$") == ["AAPL", "MSFT"]

    def test_validate_rejects_empty_and_oversized(self):
        assert validate_tickers(" , ") is None
        assert validate_tickers(",".join(f"T{i}" for i in range(21))) is None


class TestRateLimiter:
    """Tests for the fixed-window limiter."""

    def test_blocks_after_limit(self):
        clock = FakeClock()
        limiter = RateLimiter(RateLimitStore(), RateLimitConfig(max_requests=2, window_seconds=60), clock)

        first = limiter.check("ip")
        second = limiter.check("ip")
        third = limiter.check("ip")

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert third.allowed is False
        assert third.reset_in == 60

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(RateLimitStore(), RateLimitConfig(max_requests=1, window_seconds=60), clock)
        assert limiter.check("ip").allowed is True
        clock.now += 30
        blocked = limiter.check("ip")
        assert blocked.allowed is False
        assert blocked.reset_in == 30
        clock.now += 31
        assert limiter.check("ip").allowed is True

    def test_keys_are_independent(self):
        limiter = RateLimiter(RateLimitStore(), RateLimitConfig(max_requests=1, window_seconds=60), FakeClock())
        assert limiter.check("a").allowed is True
        assert limiter.check("b").allowed is True
        assert limiter.check("a").allowed is False

    def test_cleanup_drops_expired(self):
        store = RateLimitStore()
        clock = FakeClock()
        limiter = RateLimiter(store, RateLimitConfig(max_requests=5, window_seconds=10), clock)
        limiter.check("old")
        clock.now += 8
        limiter.check("new")
        assert store.cleanup(clock.now + 5) == 1
        assert len(store) == 1
