"""Static bearer-secret checks and input sanitization."""

from __future__ import annotations

import re
import secrets

from .logging import get_logger


logger = get_logger("core.security")

MAX_TICKER_LENGTH = 10
MAX_TICKERS_PER_REQUEST = 20

_TICKER_STRIP = re.compile(r"[^A-Z0-9.\-]")


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


def verify_bearer_secret(authorization: str | None, secret: str) -> bool:
    """Check an Authorization header against a configured static secret.

    An empty ``secret`` disables the check (development mode), mirroring how
    the cron endpoints behave when no secret is deployed.
    """
    if not secret:
        return True
    token = extract_bearer_token(authorization)
    if token is None:
        return False
    return secrets.compare_digest(token.encode(), secret.encode())


def sanitize_ticker(ticker: str | None) -> str | None:
    """Normalize a ticker: upper-case, only A-Z, 0-9, '.' and '-'.

    Returns None for empty input or anything longer than 10 characters
    after cleaning (e.g. ``BRK.A`` is fine, ``$$$`` is not).
    """
    if not ticker:
        return None
    sanitized = _TICKER_STRIP.sub("", ticker.upper())
    if len(sanitized) > MAX_TICKER_LENGTH:
        return None
    return sanitized or None


def validate_tickers(tickers: str) -> list[str] | None:
    """Parse a comma separated ticker list; None if empty or too long."""
    cleaned = [sanitize_ticker(t.strip()) for t in tickers.split(",")]
    valid = [t for t in cleaned if t is not None]
    if not valid or len(valid) > MAX_TICKERS_PER_REQUEST:
        return None
    return valid
