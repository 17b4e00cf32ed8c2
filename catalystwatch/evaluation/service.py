"""Checkpoint evaluation: score matured predictions against the market.

Every failure mode of a single evaluation comes back as an
``EvaluationResult`` with ``success=False`` so batch runs keep going.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from catalystwatch.core.logging import get_logger
from catalystwatch.domain.checkpoints import (
    CHECKPOINT_CONFIGS,
    CheckpointEvaluation,
    CheckpointStatusValue,
    CheckpointType,
    build_checkpoint_evaluation,
    get_checkpoint_config,
    get_checkpoint_status,
    get_days_elapsed_display,
    get_days_remaining,
    primary_checkpoint,
)
from catalystwatch.domain.models import PredictionRecord, StockRef


logger = get_logger("evaluation.service")

PERFORMANCE_PERIOD_DAYS = 30
SKIPPED_OUTPUT_LIMIT = 10

FetchCurrentPrice = Callable[[str], Awaitable[float | None]]


@dataclass(frozen=True)
class AgentOutcome:
    """One agent's score on a prediction whose primary checkpoint is evaluated."""

    agent_name: str
    score: float
    directional_accuracy: bool


@dataclass(frozen=True)
class AgentPerformanceStats:
    agent_name: str
    total_predictions: int
    correct_predictions: int
    accuracy_rate: float | None
    avg_score: float


class EvaluationStore(Protocol):
    async def get_predictions_with_stocks(self) -> list[tuple[PredictionRecord, StockRef]]: ...

    async def save_checkpoint_evaluation(
        self,
        prediction_id: int,
        checkpoint: CheckpointType,
        evaluation: CheckpointEvaluation,
        is_primary: bool,
    ) -> bool:
        """Write the slot only if still empty; False when it was already filled."""
        ...

    async def get_agent_outcomes(self) -> list[AgentOutcome]: ...

    async def save_agent_performance(
        self,
        stats: list[AgentPerformanceStats],
        period_start: datetime,
        period_end: datetime,
    ) -> None: ...


# =============================================================================
# STATUS
# =============================================================================


@dataclass(frozen=True)
class CheckpointStatus:
    type: CheckpointType
    status: CheckpointStatusValue
    days_remaining: int
    days_elapsed: int
    evaluation: CheckpointEvaluation | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "status": self.status.value,
            "daysRemaining": self.days_remaining,
            "daysElapsed": self.days_elapsed,
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
        }


@dataclass(frozen=True)
class PredictionCheckpointSummary:
    prediction_id: int
    ticker: str
    checkpoints: list[CheckpointStatus]
    primary_complete: bool
    all_complete: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "predictionId": self.prediction_id,
            "ticker": self.ticker,
            "checkpoints": [c.to_dict() for c in self.checkpoints],
            "primaryComplete": self.primary_complete,
            "allComplete": self.all_complete,
        }


@dataclass
class EvaluationResult:
    prediction_id: int
    ticker: str
    checkpoint: str
    success: bool
    evaluation: CheckpointEvaluation | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "predictionId": self.prediction_id,
            "ticker": self.ticker,
            "checkpoint": self.checkpoint,
            "success": self.success,
        }
        if self.evaluation is not None:
            data["evaluation"] = self.evaluation.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


def get_checkpoint_statuses(
    prediction: PredictionRecord, now: datetime | None = None
) -> list[CheckpointStatus]:
    days_elapsed = get_days_elapsed_display(prediction.predicted_at, now)
    statuses = []
    for config in CHECKPOINT_CONFIGS:
        existing = prediction.evaluation_for(config.type)
        statuses.append(
            CheckpointStatus(
                type=config.type,
                status=get_checkpoint_status(
                    prediction.predicted_at, config.type, existing is not None, now
                ),
                days_remaining=get_days_remaining(prediction.predicted_at, config.type, now),
                days_elapsed=days_elapsed,
                evaluation=existing,
            )
        )
    return statuses


def get_prediction_summary(
    prediction: PredictionRecord, stock: StockRef, now: datetime | None = None
) -> PredictionCheckpointSummary:
    checkpoints = get_checkpoint_statuses(prediction, now)
    primary = primary_checkpoint().type
    evaluated = CheckpointStatusValue.EVALUATED
    return PredictionCheckpointSummary(
        prediction_id=prediction.id,
        ticker=stock.ticker,
        checkpoints=checkpoints,
        primary_complete=any(c.type == primary and c.status == evaluated for c in checkpoints),
        all_complete=all(c.status == evaluated for c in checkpoints),
    )


# =============================================================================
# EVALUATION
# =============================================================================


async def evaluate_checkpoint(
    prediction: PredictionRecord,
    stock: StockRef,
    checkpoint: CheckpointType | str,
    fetch_price: FetchCurrentPrice,
    store: EvaluationStore,
    now: datetime | None = None,
) -> EvaluationResult:
    """Evaluate one checkpoint of a prediction against the current price."""
    label = checkpoint.value if isinstance(checkpoint, CheckpointType) else str(checkpoint)

    def _fail(error: str) -> EvaluationResult:
        return EvaluationResult(prediction.id, stock.ticker, label, success=False, error=error)

    config = get_checkpoint_config(checkpoint)
    if config is None:
        return _fail("Invalid checkpoint type")

    status = next(s for s in get_checkpoint_statuses(prediction, now) if s.type == config.type)
    if status.status == CheckpointStatusValue.EVALUATED:
        return _fail("Checkpoint already evaluated")
    if status.status == CheckpointStatusValue.PENDING:
        return _fail(f"Wait {status.days_remaining} more day(s)")

    if not prediction.price_at_prediction:
        return _fail("No price at prediction recorded")

    try:
        current_price = await fetch_price(stock.ticker)
    except Exception as e:
        logger.warning(f"Price fetch failed for {stock.ticker}: {e}")
        current_price = None
    if not current_price:
        return _fail("Failed to fetch current price")

    evaluation = build_checkpoint_evaluation(
        prediction.price_at_prediction,
        current_price,
        prediction.recommendation,
        evaluated_at=now or datetime.now(UTC),
    )

    try:
        written = await store.save_checkpoint_evaluation(
            prediction.id, config.type, evaluation, config.is_primary
        )
    except Exception as e:
        logger.error(f"Checkpoint update failed for prediction {prediction.id}: {e}")
        return _fail(f"Database update failed: {e}")
    if not written:
        return _fail("Checkpoint already evaluated")

    prediction.evaluations[config.type] = evaluation
    logger.info(
        f"Evaluated {config.type.value} checkpoint for {stock.ticker}",
        extra={
            "prediction_id": prediction.id,
            "return_pct": evaluation.return_pct,
            "direction": evaluation.direction.value,
            "accurate": evaluation.directional_accuracy,
        },
    )
    return EvaluationResult(
        prediction.id, stock.ticker, label, success=True, evaluation=evaluation
    )


async def evaluate_all_ready_checkpoints(
    prediction: PredictionRecord,
    stock: StockRef,
    fetch_price: FetchCurrentPrice,
    store: EvaluationStore,
    now: datetime | None = None,
) -> list[EvaluationResult]:
    results = []
    for status in get_checkpoint_statuses(prediction, now):
        if status.status != CheckpointStatusValue.READY:
            continue
        results.append(
            await evaluate_checkpoint(prediction, stock, status.type, fetch_price, store, now)
        )
    return results


# =============================================================================
# AGENT PERFORMANCE
# =============================================================================


def compute_agent_performance(outcomes: list[AgentOutcome]) -> list[AgentPerformanceStats]:
    """Aggregate per-agent accuracy.

    An agent counts as correct when its lean (score > 0) matches whether the
    prediction turned out directionally accurate.
    """
    grouped: dict[str, list[AgentOutcome]] = {}
    for outcome in outcomes:
        grouped.setdefault(outcome.agent_name, []).append(outcome)

    stats = []
    for agent_name, rows in grouped.items():
        total = len(rows)
        correct = sum(1 for r in rows if (r.score > 0) == r.directional_accuracy)
        stats.append(
            AgentPerformanceStats(
                agent_name=agent_name,
                total_predictions=total,
                correct_predictions=correct,
                accuracy_rate=correct / total * 100 if total else None,
                avg_score=sum(r.score for r in rows) / total,
            )
        )
    return stats


async def update_agent_performance(store: EvaluationStore, now: datetime | None = None) -> int:
    """Recompute agent accuracy; returns the number of agents updated."""
    current = now or datetime.now(UTC)
    outcomes = await store.get_agent_outcomes()
    if not outcomes:
        logger.info("No evaluated predictions for agent performance calculation")
        return 0

    stats = compute_agent_performance(outcomes)
    await store.save_agent_performance(
        stats, current - timedelta(days=PERFORMANCE_PERIOD_DAYS), current
    )
    logger.info(f"Updated performance metrics for {len(stats)} agents")
    return len(stats)


# =============================================================================
# DAILY RUN
# =============================================================================


@dataclass
class DailyEvaluationResult:
    total: int = 0
    evaluated: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    agents_updated: int = 0

    @property
    def accuracy(self) -> str:
        if not self.evaluated:
            return "N/A"
        accurate = sum(1 for e in self.evaluated if e["accurate"])
        return f"{accurate / len(self.evaluated) * 100:.1f}%"

    @property
    def message(self) -> str:
        if self.total == 0:
            return "No predictions found to evaluate"
        return f"Daily evaluation complete. Evaluated {len(self.evaluated)} checkpoints."

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "stats": {
                "total": self.total,
                "evaluated": len(self.evaluated),
                "skipped": len(self.skipped),
                "errors": len(self.errors),
                "accuracy": self.accuracy,
            },
            "evaluated": self.evaluated,
            "skipped": self.skipped[:SKIPPED_OUTPUT_LIMIT],
            "errors": self.errors,
        }


async def run_daily_evaluation(
    store: EvaluationStore,
    fetch_price: FetchCurrentPrice,
    now: datetime | None = None,
) -> DailyEvaluationResult:
    """Evaluate every ready checkpoint, then refresh agent performance."""
    result = DailyEvaluationResult()
    pairs = await store.get_predictions_with_stocks()
    result.total = len(pairs)

    for prediction, stock in pairs:
        for outcome in await evaluate_all_ready_checkpoints(
            prediction, stock, fetch_price, store, now
        ):
            if outcome.success and outcome.evaluation is not None:
                result.evaluated.append(
                    {
                        "ticker": outcome.ticker,
                        "checkpoint": outcome.checkpoint,
                        "returnPct": outcome.evaluation.return_pct,
                        "accurate": outcome.evaluation.directional_accuracy,
                    }
                )
            elif outcome.error and (
                outcome.error.startswith("Wait") or "already evaluated" in outcome.error
            ):
                result.skipped.append(
                    {"ticker": outcome.ticker, "checkpoint": outcome.checkpoint, "reason": outcome.error}
                )
            elif outcome.error:
                result.errors.append(
                    {"ticker": outcome.ticker, "checkpoint": outcome.checkpoint, "error": outcome.error}
                )

    if result.evaluated:
        try:
            result.agents_updated = await update_agent_performance(store, now)
        except Exception as e:
            logger.error(f"Failed to update agent performance: {e}")

    logger.info(
        result.message,
        extra={
            "evaluated": len(result.evaluated),
            "skipped": len(result.skipped),
            "errors": len(result.errors),
        },
    )
    return result


def get_evaluation_stats(
    predictions: list[PredictionRecord], now: datetime | None = None
) -> dict[str, int]:
    """Counts of evaluated and ready checkpoints across predictions."""
    stats = {"total": len(predictions)}
    for config in CHECKPOINT_CONFIGS:
        key = config.type.value
        stats[f"evaluated{key}"] = 0
        stats[f"ready{key}"] = 0
    for prediction in predictions:
        for status in get_checkpoint_statuses(prediction, now):
            key = status.type.value
            if status.status == CheckpointStatusValue.EVALUATED:
                stats[f"evaluated{key}"] += 1
            elif status.status == CheckpointStatusValue.READY:
                stats[f"ready{key}"] += 1
    return stats
