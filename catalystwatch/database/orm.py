"""SQLAlchemy ORM models for catalystwatch.

All tables use SQLAlchemy 2.0 declarative style with async support via the
asyncpg driver.

Usage:
    from catalystwatch.database.orm import Stock, Prediction
    from catalystwatch.database.connection import get_session

    async with get_session() as session:
        stock = await session.get(Stock, 1)
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


# Naming convention for constraints and indexes (deterministic names for Alembic)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# =============================================================================
# STOCKS
# =============================================================================


class Stock(Base):
    """A tracked ticker."""
    __tablename__ = "stocks"

    id: Mapped[int] = mapped_column(primary_key=True)
    ticker: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sector: Mapped[str | None] = mapped_column(String(100))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    prediction: Mapped[Prediction | None] = relationship(back_populates="stock", uselist=False)
    agent_scores: Mapped[list[AgentScore]] = relationship(back_populates="stock")

    __table_args__ = (
        Index("idx_stocks_active", "is_active"),
    )


# =============================================================================
# ANALYSIS OUTPUT
# =============================================================================


class AgentScore(Base):
    """One agent's score from the latest analysis batch of a stock."""
    __tablename__ = "agent_scores"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    agent_name: Mapped[str] = mapped_column(String(20), nullable=False)
    score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    weight: Mapped[Decimal] = mapped_column(Numeric(4, 3), nullable=False)
    reasoning: Mapped[str | None] = mapped_column(Text)
    key_metrics: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    stock: Mapped[Stock] = relationship(back_populates="agent_scores")

    __table_args__ = (
        CheckConstraint("score >= -100 AND score <= 100", name="score_range"),
        CheckConstraint("weight > 0 AND weight <= 1", name="weight_range"),
        CheckConstraint(
            "agent_name IN ('fundamental', 'technical', 'sentiment', 'macro', 'insider', 'catalyst')",
            name="agent_name",
        ),
        Index("idx_agent_scores_stock", "stock_id"),
    )


class Prediction(Base):
    """Live synthesized prediction for a stock plus its checkpoint evaluations."""
    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(
        ForeignKey("stocks.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    final_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    recommendation: Mapped[str] = mapped_column(String(4), nullable=False)
    confidence: Mapped[str] = mapped_column(String(6), nullable=False)
    holding_period: Mapped[str | None] = mapped_column(String(50))
    debate_summary: Mapped[str | None] = mapped_column(Text)
    risk_factors: Mapped[list[str]] = mapped_column(JSONB, default=list)
    urgency: Mapped[str | None] = mapped_column(String(8))
    price_at_prediction: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    predicted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # Checkpoint slots: null until evaluated, never overwritten
    evaluation_5d: Mapped[dict[str, Any] | None] = mapped_column(JSONB(none_as_null=True))
    evaluation_10d: Mapped[dict[str, Any] | None] = mapped_column(JSONB(none_as_null=True))
    evaluation_20d: Mapped[dict[str, Any] | None] = mapped_column(JSONB(none_as_null=True))
    # Mirror of the primary (10d) checkpoint
    price_at_evaluation: Mapped[Decimal | None] = mapped_column(Numeric(12, 4))
    return_pct: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    actual_direction: Mapped[str | None] = mapped_column(String(4))
    directional_accuracy: Mapped[bool | None] = mapped_column(Boolean)
    evaluated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    stock: Mapped[Stock] = relationship(back_populates="prediction")

    __table_args__ = (
        CheckConstraint("recommendation IN ('BUY', 'HOLD', 'SELL')", name="recommendation"),
        CheckConstraint("confidence IN ('LOW', 'MEDIUM', 'HIGH')", name="confidence"),
        Index("idx_predictions_predicted_at", "predicted_at", postgresql_ops={"predicted_at": "DESC"}),
    )


# =============================================================================
# CATALYSTS
# =============================================================================


class CatalystEvent(Base):
    """A detected news or analyst event and its re-analysis disposition."""
    __tablename__ = "catalyst_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    urgency: Mapped[str] = mapped_column(String(8), nullable=False)
    impact_on_score: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    source_url: Mapped[str | None] = mapped_column(Text)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    # None = pending, True = re-analysis ran, False = skipped by the gates
    triggered_reanalysis: Mapped[bool | None] = mapped_column(Boolean)
    skip_reason: Mapped[str | None] = mapped_column(Text)

    stock: Mapped[Stock] = relationship()

    __table_args__ = (
        CheckConstraint("urgency IN ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL')", name="urgency"),
        Index("idx_catalyst_events_stock_detected", "stock_id", "detected_at"),
        Index(
            "idx_catalyst_events_pending",
            "detected_at",
            postgresql_where=text("triggered_reanalysis IS NULL"),
        ),
    )


class RecommendationHistory(Base):
    """Append-only log of recommendation changes."""
    __tablename__ = "recommendation_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    stock_id: Mapped[int] = mapped_column(ForeignKey("stocks.id", ondelete="CASCADE"), nullable=False)
    previous_recommendation: Mapped[str | None] = mapped_column(String(10))
    new_recommendation: Mapped[str] = mapped_column(String(10), nullable=False)
    previous_score: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    new_score: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    change_reason: Mapped[str] = mapped_column(Text, nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_recommendation_history_stock_changed", "stock_id", "changed_at"),
    )


# =============================================================================
# PERFORMANCE
# =============================================================================


class AgentPerformance(Base):
    """Rolling directional accuracy per agent."""
    __tablename__ = "agent_performance"

    id: Mapped[int] = mapped_column(primary_key=True)
    agent_name: Mapped[str] = mapped_column(String(20), nullable=False)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_predictions: Mapped[int] = mapped_column(Integer, default=0)
    correct_predictions: Mapped[int] = mapped_column(Integer, default=0)
    accuracy_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    avg_score: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("agent_name", name="uq_agent_performance_agent"),
    )
