"""Fixed-window request rate limiting with an injectable counter store."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .logging import get_logger


logger = get_logger("core.rate_limiter")


@dataclass
class WindowCounter:
    """Request count for one key inside the current window."""

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: float


class RateLimitStore:
    """In-memory key -> counter map.

    Owned by whoever builds the limiter (the API app keeps one on
    ``app.state``), so tests get a fresh store per limiter instead of
    sharing module-level state.
    """

    def __init__(self) -> None:
        self._counters: dict[str, WindowCounter] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> WindowCounter | None:
        return self._counters.get(key)

    def set(self, key: str, counter: WindowCounter) -> None:
        self._counters[key] = counter

    def cleanup(self, now: float) -> int:
        """Drop expired windows. Returns the number removed."""
        with self._lock:
            expired = [k for k, c in self._counters.items() if now > c.reset_at]
            for key in expired:
                del self._counters[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._counters)

    @property
    def lock(self) -> threading.Lock:
        return self._lock


class RateLimiter:
    """Fixed-window limiter over a :class:`RateLimitStore`."""

    def __init__(
        self,
        store: RateLimitStore,
        config: RateLimitConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.config = config
        self._clock = clock

    def check(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is allowed."""
        now = self._clock()
        window = self.config.window_seconds
        with self.store.lock:
            entry = self.store.get(key)

            if entry is None or now > entry.reset_at:
                self.store.set(key, WindowCounter(count=1, reset_at=now + window))
                return RateLimitResult(
                    allowed=True,
                    remaining=self.config.max_requests - 1,
                    reset_in=window,
                )

            if entry.count >= self.config.max_requests:
                logger.debug(f"Rate limit exceeded for {key}")
                return RateLimitResult(
                    allowed=False, remaining=0, reset_in=entry.reset_at - now
                )

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=self.config.max_requests - entry.count,
                reset_in=entry.reset_at - now,
            )
