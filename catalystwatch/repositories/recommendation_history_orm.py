"""Recommendation history repository (append-only)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalystwatch.database.connection import get_session
from catalystwatch.database.orm import RecommendationHistory


CATALYST_REASON_PATTERN = "%Catalyst-triggered%"


def build_history_row(
    stock_id: int,
    new_recommendation: str,
    change_reason: str,
    new_score: float | None = None,
    previous_recommendation: str | None = None,
    previous_score: float | None = None,
) -> RecommendationHistory:
    return RecommendationHistory(
        stock_id=stock_id,
        previous_recommendation=previous_recommendation,
        new_recommendation=new_recommendation,
        previous_score=Decimal(str(previous_score)) if previous_score is not None else None,
        new_score=Decimal(str(new_score)) if new_score is not None else None,
        change_reason=change_reason,
    )


async def add_history(
    stock_id: int,
    new_recommendation: str,
    change_reason: str,
    new_score: float | None = None,
    previous_recommendation: str | None = None,
    previous_score: float | None = None,
) -> None:
    async with get_session() as session:
        session.add(
            build_history_row(
                stock_id,
                new_recommendation,
                change_reason,
                new_score,
                previous_recommendation,
                previous_score,
            )
        )
        await session.commit()


async def _count_catalyst_reanalyses(session: AsyncSession, stock_id: int, since: datetime) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(RecommendationHistory)
        .where(
            RecommendationHistory.stock_id == stock_id,
            RecommendationHistory.changed_at >= since,
            RecommendationHistory.change_reason.like(CATALYST_REASON_PATTERN),
        )
    )
    return result.scalar() or 0


async def count_catalyst_reanalyses_24h(stock_id: int) -> int:
    """Catalyst-triggered re-analyses of a stock in the trailing 24 hours."""
    since = datetime.now(UTC) - timedelta(hours=24)
    async with get_session() as session:
        return await _count_catalyst_reanalyses(session, stock_id, since)


async def list_history_for_stock(stock_id: int, limit: int = 10) -> Sequence[RecommendationHistory]:
    async with get_session() as session:
        result = await session.execute(
            select(RecommendationHistory)
            .where(RecommendationHistory.stock_id == stock_id)
            .order_by(RecommendationHistory.changed_at.desc())
            .limit(limit)
        )
        return result.scalars().all()
