"""Prediction and agent score repository using SQLAlchemy ORM.

Usage:
    from catalystwatch.repositories import predictions_orm as predictions

    current = await predictions.get_current_recommendation(stock_id)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalystwatch.core.logging import get_logger
from catalystwatch.database.connection import get_session
from catalystwatch.database.orm import AgentScore, Prediction, Stock
from catalystwatch.domain.checkpoints import CheckpointEvaluation, CheckpointType
from catalystwatch.domain.models import CurrentRecommendation, PredictionRecord, StockRef
from catalystwatch.domain.scoring import Recommendation, parse_confidence
from catalystwatch.evaluation.service import AgentOutcome

from .recommendation_history_orm import build_history_row
from .stocks_orm import to_stock_ref


logger = get_logger("repositories.predictions_orm")


def _to_float(value: Decimal | float | None) -> float | None:
    return float(value) if value is not None else None


def to_prediction_record(prediction: Prediction) -> PredictionRecord:
    evaluations: dict[CheckpointType, CheckpointEvaluation | None] = {}
    for checkpoint in CheckpointType:
        raw = getattr(prediction, checkpoint.field_name)
        evaluations[checkpoint] = CheckpointEvaluation.from_dict(raw) if raw else None
    return PredictionRecord(
        id=prediction.id,
        stock_id=prediction.stock_id,
        final_score=float(prediction.final_score),
        recommendation=Recommendation(prediction.recommendation),
        confidence=prediction.confidence,
        predicted_at=prediction.predicted_at,
        price_at_prediction=_to_float(prediction.price_at_prediction),
        evaluations=evaluations,
    )


# =============================================================================
# READS
# =============================================================================

async def _get_prediction_for_stock(session: AsyncSession, stock_id: int) -> Prediction | None:
    result = await session.execute(
        select(Prediction)
        .where(Prediction.stock_id == stock_id)
        .order_by(Prediction.predicted_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_current_recommendation(stock_id: int) -> CurrentRecommendation | None:
    """The live prediction of a stock as seen by the trigger gates."""
    async with get_session() as session:
        prediction = await _get_prediction_for_stock(session, stock_id)

    if prediction is None:
        return None
    return CurrentRecommendation(
        score=float(prediction.final_score),
        confidence_pct=parse_confidence(prediction.confidence),
        last_analyzed_at=prediction.predicted_at,
        recommendation=Recommendation(prediction.recommendation),
    )


async def get_prediction_with_stock(prediction_id: int) -> tuple[PredictionRecord, StockRef] | None:
    async with get_session() as session:
        result = await session.execute(
            select(Prediction, Stock)
            .join(Stock, Stock.id == Prediction.stock_id)
            .where(Prediction.id == prediction_id)
        )
        row = result.first()

    if row is None:
        return None
    prediction, stock = row
    return to_prediction_record(prediction), to_stock_ref(stock)


async def list_predictions_with_stocks() -> list[tuple[PredictionRecord, StockRef]]:
    """All predictions joined with their stock, oldest first."""
    async with get_session() as session:
        result = await session.execute(
            select(Prediction, Stock)
            .join(Stock, Stock.id == Prediction.stock_id)
            .order_by(Prediction.predicted_at.asc())
        )
        rows = result.all()
    return [(to_prediction_record(p), to_stock_ref(s)) for p, s in rows]


async def get_agent_outcomes() -> list[AgentOutcome]:
    """Agent scores of predictions whose primary checkpoint is evaluated."""
    async with get_session() as session:
        result = await session.execute(
            select(AgentScore.agent_name, AgentScore.score, Prediction.evaluation_10d)
            .join(Prediction, Prediction.stock_id == AgentScore.stock_id)
            .where(Prediction.evaluation_10d.is_not(None))
        )
        rows = result.all()

    return [
        AgentOutcome(
            agent_name=agent_name,
            score=float(score),
            directional_accuracy=bool(evaluation.get("directionalAccuracy")),
        )
        for agent_name, score, evaluation in rows
        if evaluation
    ]


# =============================================================================
# WRITES
# =============================================================================

async def save_checkpoint_evaluation(
    prediction_id: int,
    checkpoint: CheckpointType,
    evaluation: CheckpointEvaluation,
    is_primary: bool,
) -> bool:
    """Write a checkpoint slot only while it is still NULL.

    Returns False when another writer filled the slot first.
    """
    slot = getattr(Prediction, checkpoint.field_name)
    values: dict[str, Any] = {checkpoint.field_name: evaluation.to_dict()}
    if is_primary:
        values.update(
            price_at_evaluation=Decimal(str(evaluation.price)),
            return_pct=Decimal(str(evaluation.return_pct)),
            actual_direction=evaluation.direction.value,
            directional_accuracy=evaluation.directional_accuracy,
            evaluated_at=evaluation.evaluated_at,
        )

    async with get_session() as session:
        result = await session.execute(
            update(Prediction)
            .where(Prediction.id == prediction_id, slot.is_(None))
            .values(**values)
        )
        await session.commit()
        return result.rowcount == 1


async def replace_analysis(
    stock_id: int,
    agent_scores: Sequence[Mapping[str, Any]],
    prediction: Mapping[str, Any],
    change_reason: str = "Scheduled analysis",
) -> int:
    """Swap in a fresh analysis for a stock in one transaction.

    Deletes the previous agent scores and prediction, inserts the new ones
    and, when the recommendation changed, appends a history row. Readers
    never observe a stock with its old rows deleted and no new rows.

    Returns the new prediction id.
    """
    now = datetime.now(UTC)
    async with get_session() as session:
        async with session.begin():
            previous = await _get_prediction_for_stock(session, stock_id)
            previous_rec = previous.recommendation if previous else None
            previous_score = _to_float(previous.final_score) if previous else None

            await session.execute(delete(AgentScore).where(AgentScore.stock_id == stock_id))
            await session.execute(delete(Prediction).where(Prediction.stock_id == stock_id))

            for score in agent_scores:
                session.add(
                    AgentScore(
                        stock_id=stock_id,
                        agent_name=score["agent_name"],
                        score=Decimal(str(score["score"])),
                        weight=Decimal(str(score["weight"])),
                        reasoning=score.get("reasoning"),
                        key_metrics=dict(score.get("key_metrics") or {}),
                        timestamp=now,
                    )
                )

            new_prediction = Prediction(
                stock_id=stock_id,
                final_score=Decimal(str(prediction["final_score"])),
                recommendation=prediction["recommendation"],
                confidence=prediction["confidence"],
                holding_period=prediction.get("holding_period"),
                debate_summary=prediction.get("debate_summary"),
                risk_factors=list(prediction.get("risk_factors") or []),
                urgency=prediction.get("urgency"),
                price_at_prediction=(
                    Decimal(str(prediction["price_at_prediction"]))
                    if prediction.get("price_at_prediction") is not None
                    else None
                ),
                predicted_at=now,
            )
            session.add(new_prediction)

            if previous_rec is not None and previous_rec != prediction["recommendation"]:
                session.add(
                    build_history_row(
                        stock_id,
                        new_recommendation=prediction["recommendation"],
                        change_reason=change_reason,
                        new_score=float(prediction["final_score"]),
                        previous_recommendation=previous_rec,
                        previous_score=previous_score,
                    )
                )

            await session.flush()
            prediction_id = new_prediction.id

    logger.info(
        f"Stored analysis for stock {stock_id}",
        extra={
            "prediction_id": prediction_id,
            "recommendation": prediction["recommendation"],
            "previous_recommendation": previous_rec,
        },
    )
    return prediction_id
