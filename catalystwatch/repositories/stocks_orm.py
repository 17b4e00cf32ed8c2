"""Stock repository using SQLAlchemy ORM.

Usage:
    from catalystwatch.repositories import stocks_orm as stocks

    active = await stocks.list_active_stocks()
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalystwatch.core.exceptions import ConflictError
from catalystwatch.core.logging import get_logger
from catalystwatch.database.connection import get_session
from catalystwatch.database.orm import Stock
from catalystwatch.domain.models import StockRef


logger = get_logger("repositories.stocks_orm")


def to_stock_ref(stock: Stock) -> StockRef:
    return StockRef(
        id=stock.id,
        ticker=stock.ticker,
        company_name=stock.company_name,
        sector=stock.sector,
        is_active=stock.is_active,
    )


# =============================================================================
# INTERNAL ORM REPOSITORY FUNCTIONS (session-managed)
# =============================================================================

async def _get_stock(session: AsyncSession, ticker: str) -> Stock | None:
    result = await session.execute(
        select(Stock).where(Stock.ticker == ticker.upper())
    )
    return result.scalar_one_or_none()


# =============================================================================
# PUBLIC API FUNCTIONS (auto-manage sessions)
# =============================================================================

async def list_active_stocks() -> list[StockRef]:
    """All active stocks, ordered by ticker."""
    async with get_session() as session:
        result = await session.execute(
            select(Stock).where(Stock.is_active == True).order_by(Stock.ticker)
        )
        return [to_stock_ref(s) for s in result.scalars().all()]


async def get_stock_ref(ticker: str) -> StockRef | None:
    async with get_session() as session:
        stock = await _get_stock(session, ticker)
        return to_stock_ref(stock) if stock else None


async def list_stocks_with_predictions() -> Sequence[Stock]:
    """Active stocks with their live prediction eagerly loaded."""
    async with get_session() as session:
        result = await session.execute(
            select(Stock)
            .where(Stock.is_active == True)
            .options(selectinload(Stock.prediction))
            .order_by(Stock.ticker)
        )
        return result.scalars().all()


async def get_stock_with_analysis(ticker: str) -> Stock | None:
    """A stock with its prediction and latest agent scores eagerly loaded."""
    async with get_session() as session:
        result = await session.execute(
            select(Stock)
            .where(Stock.ticker == ticker.upper())
            .options(selectinload(Stock.prediction), selectinload(Stock.agent_scores))
        )
        return result.scalar_one_or_none()


async def create_stock(
    ticker: str,
    company_name: str,
    sector: str | None = None,
) -> Stock:
    """Create a tracked stock. Raises ConflictError if the ticker exists."""
    async with get_session() as session:
        if await _get_stock(session, ticker):
            raise ConflictError(message=f"Stock {ticker.upper()} already exists")

        stock = Stock(
            ticker=ticker.upper(),
            company_name=company_name,
            sector=sector,
            is_active=True,
        )
        session.add(stock)
        await session.commit()
        await session.refresh(stock)
        logger.info(f"Created stock {stock.ticker}")
        return stock


async def count_stocks() -> int:
    async with get_session() as session:
        result = await session.execute(select(func.count()).select_from(Stock))
        return result.scalar() or 0
