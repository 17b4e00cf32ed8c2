"""Catalyst event repository using SQLAlchemy ORM.

A catalyst's disposition (``triggered_reanalysis``) is written once: every
update here is guarded with ``triggered_reanalysis IS NULL``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from catalystwatch.catalysts.classifier import CatalystCandidate
from catalystwatch.core.logging import get_logger
from catalystwatch.database.connection import get_session
from catalystwatch.database.orm import CatalystEvent, Stock
from catalystwatch.domain.catalysts import EventType, Urgency
from catalystwatch.domain.models import PendingCatalyst, RecentCatalyst


logger = get_logger("repositories.catalysts_orm")


# =============================================================================
# READS
# =============================================================================

async def get_pending_catalysts(since: datetime) -> list[PendingCatalyst]:
    """Unprocessed catalysts detected since ``since``, oldest first.

    Rows with an event type outside the known taxonomy are logged and left
    alone.
    """
    async with get_session() as session:
        result = await session.execute(
            select(CatalystEvent, Stock.ticker, Stock.is_active)
            .join(Stock, Stock.id == CatalystEvent.stock_id)
            .where(
                CatalystEvent.detected_at >= since,
                CatalystEvent.triggered_reanalysis.is_(None),
            )
            .order_by(CatalystEvent.detected_at, CatalystEvent.id)
        )
        rows = result.all()

    pending = []
    for event, ticker, is_active in rows:
        event_type = EventType.parse(event.event_type)
        if event_type is None:
            logger.warning(
                f"Ignoring catalyst {event.id} with unknown event type {event.event_type!r}"
            )
            continue
        pending.append(
            PendingCatalyst(
                id=event.id,
                stock_id=event.stock_id,
                ticker=ticker,
                stock_active=is_active,
                event_type=event_type,
                urgency=Urgency(event.urgency),
                description=event.description,
                detected_at=event.detected_at,
            )
        )
    return pending


async def get_recent_catalysts(stock_id: int, since: datetime) -> list[RecentCatalyst]:
    async with get_session() as session:
        result = await session.execute(
            select(CatalystEvent)
            .where(
                CatalystEvent.stock_id == stock_id,
                CatalystEvent.detected_at >= since,
            )
        )
        return [
            RecentCatalyst(
                stock_id=e.stock_id,
                event_type=e.event_type,
                description=e.description or "",
                detected_at=e.detected_at,
            )
            for e in result.scalars().all()
        ]


async def list_recent_catalysts(hours: int = 24, limit: int = 20) -> Sequence[CatalystEvent]:
    """Most recent catalysts of any disposition, newest first."""
    since = datetime.now(UTC) - timedelta(hours=hours)
    async with get_session() as session:
        result = await session.execute(
            select(CatalystEvent)
            .where(CatalystEvent.detected_at >= since)
            .order_by(CatalystEvent.detected_at.desc())
            .limit(limit)
        )
        return result.scalars().all()


async def list_catalysts_for_stock(stock_id: int, days: int = 14) -> Sequence[CatalystEvent]:
    since = datetime.now(UTC) - timedelta(days=days)
    async with get_session() as session:
        result = await session.execute(
            select(CatalystEvent)
            .where(CatalystEvent.stock_id == stock_id, CatalystEvent.detected_at >= since)
            .order_by(CatalystEvent.detected_at.desc())
        )
        return result.scalars().all()


# =============================================================================
# WRITES
# =============================================================================

async def insert_catalyst(candidate: CatalystCandidate, detected_at: datetime) -> bool:
    """Insert a pending catalyst. Returns False on a constraint conflict."""
    async with get_session() as session:
        session.add(
            CatalystEvent(
                stock_id=candidate.stock_id,
                event_type=candidate.event_type.value,
                urgency=candidate.urgency.value,
                impact_on_score=Decimal(str(candidate.impact_score)),
                description=candidate.description,
                source_url=candidate.source_url,
                detected_at=detected_at,
            )
        )
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.debug(f"Duplicate catalyst for {candidate.ticker}: {e}")
            return False
        return True


async def log_catalyst_skip(catalyst_ids: list[int], reason: str) -> int:
    """Mark pending catalysts as skipped. Returns the number updated."""
    if not catalyst_ids:
        return 0
    async with get_session() as session:
        result = await session.execute(
            update(CatalystEvent)
            .where(
                CatalystEvent.id.in_(catalyst_ids),
                CatalystEvent.triggered_reanalysis.is_(None),
            )
            .values(triggered_reanalysis=False, skip_reason=reason)
        )
        await session.commit()
        return result.rowcount


async def mark_catalysts_triggered(catalyst_ids: list[int]) -> int:
    if not catalyst_ids:
        return 0
    async with get_session() as session:
        result = await session.execute(
            update(CatalystEvent)
            .where(
                CatalystEvent.id.in_(catalyst_ids),
                CatalystEvent.triggered_reanalysis.is_(None),
            )
            .values(triggered_reanalysis=True)
        )
        await session.commit()
        return result.rowcount
