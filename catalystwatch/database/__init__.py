"""Database module: SQLAlchemy async engine, sessions and ORM models."""

from .connection import (
    close_database,
    close_sqlalchemy_engine,
    get_async_database_url,
    get_engine,
    get_session,
    get_session_factory,
    init_database,
    init_sqlalchemy_engine,
)
from .orm import (
    AgentPerformance,
    AgentScore,
    Base,
    CatalystEvent,
    Prediction,
    RecommendationHistory,
    Stock,
)


__all__ = [
    "AgentPerformance",
    "AgentScore",
    "Base",
    "CatalystEvent",
    "Prediction",
    "RecommendationHistory",
    "Stock",
    "close_database",
    "close_sqlalchemy_engine",
    "get_async_database_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_database",
    "init_sqlalchemy_engine",
]
