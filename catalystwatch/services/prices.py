"""
Current quote lookup via yfinance.

yfinance is blocking, so calls run in a small thread pool. Quotes are cached
in memory for a minute so a daily evaluation run that touches the same ticker
for several checkpoints only hits Yahoo once.

Usage:
    from catalystwatch.services.prices import fetch_current_price

    price = await fetch_current_price("AAPL")  # None when unavailable
"""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import yfinance as yf

from catalystwatch.core.logging import get_logger


logger = get_logger("services.prices")

# Thread pool for blocking yfinance calls
_executor = ThreadPoolExecutor(max_workers=4)

_QUOTE_CACHE: dict[str, tuple[float, float]] = {}
QUOTE_CACHE_TTL = 60
QUOTE_CACHE_MAX_ENTRIES = 500


def _safe_float(value: Any) -> Optional[float]:
    """Safely convert value to a finite, positive float."""
    if value is None:
        return None
    try:
        f = float(value)
    except (ValueError, TypeError):
        return None
    if f != f or f in (float("inf"), float("-inf")) or f <= 0:
        return None
    return f


def _fetch_quote_sync(symbol: str) -> Optional[float]:
    """Fetch the latest trade price from yfinance (blocking)."""
    try:
        ticker = yf.Ticker(symbol)
        fast = ticker.fast_info
        price = _safe_float(fast.get("lastPrice")) if fast is not None else None
        if price is not None:
            return price

        info = ticker.info or {}
        return _safe_float(
            info.get("regularMarketPrice")
            or info.get("currentPrice")
            or info.get("previousClose")
        )
    except Exception as e:
        logger.warning(f"yfinance quote failed for {symbol}: {e}")
        return None


def _cache_quote(symbol: str, price: float) -> None:
    _QUOTE_CACHE[symbol] = (time.time(), price)
    # Prune expired entries once the cache grows
    if len(_QUOTE_CACHE) > QUOTE_CACHE_MAX_ENTRIES:
        now = time.time()
        expired = [k for k, (ts, _) in _QUOTE_CACHE.items() if now - ts >= QUOTE_CACHE_TTL]
        for k in expired:
            del _QUOTE_CACHE[k]


async def fetch_current_price(ticker: str, use_cache: bool = True) -> Optional[float]:
    """Latest price for ``ticker``, or None when the quote is unavailable."""
    symbol = ticker.strip().upper()

    if use_cache:
        cached = _QUOTE_CACHE.get(symbol)
        if cached:
            if time.time() - cached[0] < QUOTE_CACHE_TTL:
                return cached[1]
            del _QUOTE_CACHE[symbol]

    loop = asyncio.get_running_loop()
    price = await loop.run_in_executor(_executor, _fetch_quote_sync, symbol)

    if price is not None:
        _cache_quote(symbol, price)
    return price


def clear_quote_cache(ticker: Optional[str] = None) -> None:
    if ticker:
        _QUOTE_CACHE.pop(ticker.upper(), None)
    else:
        _QUOTE_CACHE.clear()
