"""Agent performance repository using SQLAlchemy ORM."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from catalystwatch.core.logging import get_logger
from catalystwatch.database.connection import get_session
from catalystwatch.database.orm import AgentPerformance
from catalystwatch.evaluation.service import AgentPerformanceStats


logger = get_logger("repositories.agent_performance_orm")


async def save_agent_performance(
    stats: list[AgentPerformanceStats],
    period_start: datetime,
    period_end: datetime,
) -> None:
    """Upsert one row per agent."""
    now = datetime.now(UTC)
    async with get_session() as session:
        for s in stats:
            values = {
                "period_start": period_start,
                "period_end": period_end,
                "total_predictions": s.total_predictions,
                "correct_predictions": s.correct_predictions,
                "accuracy_rate": (
                    Decimal(str(round(s.accuracy_rate, 2))) if s.accuracy_rate is not None else None
                ),
                "avg_score": Decimal(str(round(s.avg_score, 2))),
                "calculated_at": now,
            }
            stmt = insert(AgentPerformance).values(
                agent_name=s.agent_name, **values
            ).on_conflict_do_update(
                index_elements=["agent_name"],
                set_=values,
            )
            await session.execute(stmt)
        await session.commit()


async def list_agent_performance(limit: int = 6) -> Sequence[AgentPerformance]:
    async with get_session() as session:
        result = await session.execute(
            select(AgentPerformance)
            .order_by(AgentPerformance.calculated_at.desc())
            .limit(limit)
        )
        return result.scalars().all()
