"""Tests for checkpoint evaluation and the daily run."""

from unittest.mock import AsyncMock

import pytest

from catalystwatch.domain.checkpoints import CheckpointType, build_checkpoint_evaluation
from catalystwatch.domain.scoring import Recommendation
from catalystwatch.evaluation.service import (
    AgentOutcome,
    EvaluationResult,
    compute_agent_performance,
    evaluate_all_ready_checkpoints,
    evaluate_checkpoint,
    get_evaluation_stats,
    get_prediction_summary,
    run_daily_evaluation,
    update_agent_performance,
)

from conftest import NOW, FakeEvaluationStore, make_prediction, make_stock


def _evaluated(price: float = 105.0):
    return build_checkpoint_evaluation(100.0, price, "BUY", NOW)


class TestEvaluateCheckpoint:
    """Tests for evaluate_checkpoint failure modes and the happy path."""

    @pytest.mark.asyncio
    async def test_success(self, evaluation_store):
        prediction = make_prediction(days_ago=6)
        fetch = AsyncMock(return_value=110.0)

        result = await evaluate_checkpoint(
            prediction, make_stock(), "5d", fetch, evaluation_store, NOW
        )

        assert result.success is True
        assert result.evaluation.return_pct == 10.0
        assert result.evaluation.directional_accuracy is True
        assert prediction.evaluation_for(CheckpointType.D5) == result.evaluation
        (saved,) = evaluation_store.saved
        assert saved[0] == 1
        assert saved[1] == CheckpointType.D5
        assert saved[3] is False
        fetch.assert_awaited_once_with("AAPL")

    @pytest.mark.asyncio
    async def test_invalid_checkpoint(self, evaluation_store):
        result = await evaluate_checkpoint(
            make_prediction(), make_stock(), "15d", AsyncMock(), evaluation_store, NOW
        )
        assert result.success is False
        assert result.error == "Invalid checkpoint type"

    @pytest.mark.asyncio
    async def test_already_evaluated(self, evaluation_store):
        prediction = make_prediction(days_ago=6, evaluations={CheckpointType.D5: _evaluated()})
        result = await evaluate_checkpoint(
            prediction, make_stock(), "5d", AsyncMock(), evaluation_store, NOW
        )
        assert result.error == "Checkpoint already evaluated"

    @pytest.mark.asyncio
    async def test_not_ready(self, evaluation_store):
        fetch = AsyncMock(return_value=110.0)
        result = await evaluate_checkpoint(
            make_prediction(days_ago=6), make_stock(), CheckpointType.D10, fetch, evaluation_store, NOW
        )
        assert result.error == "Wait 4 more day(s)"
        fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_prediction_price(self, evaluation_store):
        result = await evaluate_checkpoint(
            make_prediction(price=None), make_stock(), "5d", AsyncMock(), evaluation_store, NOW
        )
        assert result.error == "No price at prediction recorded"

    @pytest.mark.asyncio
    async def test_price_unavailable(self, evaluation_store):
        result = await evaluate_checkpoint(
            make_prediction(), make_stock(), "5d", AsyncMock(return_value=None), evaluation_store, NOW
        )
        assert result.error == "Failed to fetch current price"

    @pytest.mark.asyncio
    async def test_price_fetch_raises(self, evaluation_store):
        fetch = AsyncMock(side_effect=RuntimeError("yahoo down"))
        result = await evaluate_checkpoint(
            make_prediction(), make_stock(), "5d", fetch, evaluation_store, NOW
        )
        assert result.error == "Failed to fetch current price"

    @pytest.mark.asyncio
    async def test_database_failure(self, evaluation_store):
        evaluation_store.fail_save = RuntimeError("deadlock detected")
        prediction = make_prediction()
        result = await evaluate_checkpoint(
            prediction, make_stock(), "5d", AsyncMock(return_value=101.0), evaluation_store, NOW
        )
        assert result.error == "Database update failed: deadlock detected"
        assert prediction.evaluation_for(CheckpointType.D5) is None

    @pytest.mark.asyncio
    async def test_concurrent_write_loses(self, evaluation_store):
        evaluation_store.filled.add((1, CheckpointType.D5))
        result = await evaluate_checkpoint(
            make_prediction(), make_stock(), "5d", AsyncMock(return_value=101.0), evaluation_store, NOW
        )
        assert result.success is False
        assert result.error == "Checkpoint already evaluated"

    def test_result_shape(self):
        evaluation = _evaluated()
        data = EvaluationResult(7, "AAPL", "5d", True, evaluation=evaluation).to_dict()
        assert data["predictionId"] == 7
        assert data["evaluation"]["direction"] == "UP"
        assert "error" not in data


class TestEvaluateAllReady:
    """Tests for evaluate_all_ready_checkpoints."""

    @pytest.mark.asyncio
    async def test_evaluates_every_matured_checkpoint(self, evaluation_store):
        prediction = make_prediction(days_ago=21)
        results = await evaluate_all_ready_checkpoints(
            prediction, make_stock(), AsyncMock(return_value=104.0), evaluation_store, NOW
        )
        assert [r.checkpoint for r in results] == ["5d", "10d", "20d"]
        primary_flags = {cp: primary for _, cp, _, primary in evaluation_store.saved}
        assert primary_flags == {
            CheckpointType.D5: False,
            CheckpointType.D10: True,
            CheckpointType.D20: False,
        }

    @pytest.mark.asyncio
    async def test_skips_pending_and_evaluated(self, evaluation_store):
        prediction = make_prediction(days_ago=12, evaluations={CheckpointType.D5: _evaluated()})
        results = await evaluate_all_ready_checkpoints(
            prediction, make_stock(), AsyncMock(return_value=104.0), evaluation_store, NOW
        )
        assert [r.checkpoint for r in results] == ["10d"]


class TestAgentPerformance:
    """Tests for per-agent accuracy aggregation."""

    def test_compute(self):
        stats = compute_agent_performance(
            [
                AgentOutcome("Fundamental", 20.0, True),
                AgentOutcome("Fundamental", -10.0, True),
                AgentOutcome("Sentiment", -5.0, False),
            ]
        )
        by_name = {s.agent_name: s for s in stats}
        assert by_name["Fundamental"].total_predictions == 2
        assert by_name["Fundamental"].correct_predictions == 1
        assert by_name["Fundamental"].accuracy_rate == 50.0
        assert by_name["Fundamental"].avg_score == 5.0
        assert by_name["Sentiment"].accuracy_rate == 100.0

    @pytest.mark.asyncio
    async def test_update_without_outcomes(self, evaluation_store):
        assert await update_agent_performance(evaluation_store, NOW) == 0
        assert evaluation_store.performance == []

    @pytest.mark.asyncio
    async def test_update_saves_thirty_day_period(self):
        store = FakeEvaluationStore(outcomes=[AgentOutcome("Technical", 12.0, True)])
        assert await update_agent_performance(store, NOW) == 1
        (_, start, end) = store.performance[0]
        assert end == NOW
        assert (end - start).days == 30


class TestDailyEvaluation:
    """Tests for run_daily_evaluation."""

    @pytest.mark.asyncio
    async def test_no_predictions(self, evaluation_store):
        result = await run_daily_evaluation(evaluation_store, AsyncMock(), NOW)
        data = result.to_dict()
        assert data["message"] == "No predictions found to evaluate"
        assert data["stats"]["accuracy"] == "N/A"

    @pytest.mark.asyncio
    async def test_mixed_run(self):
        aapl, msft, nvda = make_stock(1, "AAPL"), make_stock(2, "MSFT"), make_stock(3, "NVDA")
        store = FakeEvaluationStore(
            pairs=[
                (make_prediction(1, 1, days_ago=6, recommendation=Recommendation.BUY), aapl),
                (make_prediction(2, 2, days_ago=6, recommendation=Recommendation.SELL), msft),
                (make_prediction(3, 3, days_ago=2), nvda),
            ],
            outcomes=[AgentOutcome("Fundamental", 30.0, True)],
        )
        prices = {"AAPL": 108.0, "MSFT": 108.0}

        async def fetch(ticker):
            return prices.get(ticker)

        result = await run_daily_evaluation(store, fetch, NOW)
        data = result.to_dict()

        assert data["message"] == "Daily evaluation complete. Evaluated 2 checkpoints."
        assert data["stats"] == {
            "total": 3,
            "evaluated": 2,
            "skipped": 0,
            "errors": 0,
            "accuracy": "50.0%",
        }
        assert result.agents_updated == 1

    @pytest.mark.asyncio
    async def test_price_errors_are_reported(self):
        store = FakeEvaluationStore(pairs=[(make_prediction(), make_stock())])
        result = await run_daily_evaluation(store, AsyncMock(return_value=None), NOW)
        assert result.errors == [
            {"ticker": "AAPL", "checkpoint": "5d", "error": "Failed to fetch current price"}
        ]
        assert store.performance == []


class TestSummaries:
    """Tests for checkpoint summaries and counts."""

    def test_prediction_summary(self):
        prediction = make_prediction(days_ago=12, evaluations={CheckpointType.D10: _evaluated()})
        summary = get_prediction_summary(prediction, make_stock(), NOW)
        statuses = {c.type: c.status.value for c in summary.checkpoints}
        assert statuses == {
            CheckpointType.D5: "ready",
            CheckpointType.D10: "evaluated",
            CheckpointType.D20: "pending",
        }
        assert summary.primary_complete is True
        assert summary.all_complete is False
        assert summary.to_dict()["checkpoints"][0]["daysElapsed"] == 12

    def test_evaluation_stats(self):
        predictions = [
            make_prediction(1, days_ago=6),
            make_prediction(2, days_ago=12, evaluations={CheckpointType.D5: _evaluated()}),
        ]
        stats = get_evaluation_stats(predictions, NOW)
        assert stats["total"] == 2
        assert stats["ready5d"] == 1
        assert stats["evaluated5d"] == 1
        assert stats["ready10d"] == 1
        assert stats["evaluated20d"] == 0
