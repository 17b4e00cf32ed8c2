"""Core infrastructure: settings, security, logging, exceptions."""

from .config import settings
from .exceptions import (
    AnalysisError,
    AppException,
    AuthenticationError,
    BadRequestError,
    ExternalServiceError,
    JobError,
    NotFoundError,
    RateLimitError,
)
from .security import sanitize_ticker, verify_bearer_secret


__all__ = [
    "AnalysisError",
    "AppException",
    "AuthenticationError",
    "BadRequestError",
    "ExternalServiceError",
    "JobError",
    "NotFoundError",
    "RateLimitError",
    "sanitize_ticker",
    "settings",
    "verify_bearer_secret",
]
