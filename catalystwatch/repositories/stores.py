"""Database-backed implementations of the catalyst and evaluation stores."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from catalystwatch.catalysts.classifier import CatalystCandidate
from catalystwatch.database.orm import AgentPerformance
from catalystwatch.domain.checkpoints import CheckpointEvaluation, CheckpointType
from catalystwatch.domain.models import (
    CurrentRecommendation,
    PendingCatalyst,
    PredictionRecord,
    RecentCatalyst,
    StockRef,
)
from catalystwatch.evaluation.service import AgentOutcome, AgentPerformanceStats

from . import (
    agent_performance_orm,
    catalysts_orm,
    predictions_orm,
    recommendation_history_orm,
    stocks_orm,
)


class SqlCatalystStore:
    """Backs the catalyst monitor and the detection scan."""

    async def get_pending_catalysts(self, since: datetime) -> list[PendingCatalyst]:
        return await catalysts_orm.get_pending_catalysts(since)

    async def get_current_recommendation(self, stock_id: int) -> CurrentRecommendation | None:
        return await predictions_orm.get_current_recommendation(stock_id)

    async def get_reanalysis_count_24h(self, stock_id: int) -> int:
        return await recommendation_history_orm.count_catalyst_reanalyses_24h(stock_id)

    async def log_catalyst_skip(self, catalyst_ids: list[int], reason: str) -> None:
        await catalysts_orm.log_catalyst_skip(catalyst_ids, reason)

    async def mark_catalysts_triggered(self, catalyst_ids: list[int]) -> None:
        await catalysts_orm.mark_catalysts_triggered(catalyst_ids)

    async def record_reanalysis(
        self, stock_id: int, new_recommendation: str, new_score: float, change_reason: str
    ) -> None:
        await recommendation_history_orm.add_history(
            stock_id,
            new_recommendation=new_recommendation,
            change_reason=change_reason,
            new_score=new_score,
        )

    # Detection

    async def get_active_stocks(self) -> list[StockRef]:
        return await stocks_orm.list_active_stocks()

    async def get_stock_by_ticker(self, ticker: str) -> StockRef | None:
        return await stocks_orm.get_stock_ref(ticker)

    async def get_recent_catalysts(self, stock_id: int, since: datetime) -> list[RecentCatalyst]:
        return await catalysts_orm.get_recent_catalysts(stock_id, since)

    async def insert_catalyst(self, candidate: CatalystCandidate, detected_at: datetime) -> bool:
        return await catalysts_orm.insert_catalyst(candidate, detected_at)


class SqlEvaluationStore:
    async def get_predictions_with_stocks(self) -> list[tuple[PredictionRecord, StockRef]]:
        return await predictions_orm.list_predictions_with_stocks()

    async def save_checkpoint_evaluation(
        self,
        prediction_id: int,
        checkpoint: CheckpointType,
        evaluation: CheckpointEvaluation,
        is_primary: bool,
    ) -> bool:
        return await predictions_orm.save_checkpoint_evaluation(
            prediction_id, checkpoint, evaluation, is_primary
        )

    async def get_agent_outcomes(self) -> list[AgentOutcome]:
        return await predictions_orm.get_agent_outcomes()

    async def save_agent_performance(
        self,
        stats: list[AgentPerformanceStats],
        period_start: datetime,
        period_end: datetime,
    ) -> None:
        await agent_performance_orm.save_agent_performance(stats, period_start, period_end)

    # Read side for the API

    async def get_prediction_with_stock(
        self, prediction_id: int
    ) -> tuple[PredictionRecord, StockRef] | None:
        return await predictions_orm.get_prediction_with_stock(prediction_id)

    async def list_agent_performance(self, limit: int = 6) -> Sequence[AgentPerformance]:
        return await agent_performance_orm.list_agent_performance(limit)
