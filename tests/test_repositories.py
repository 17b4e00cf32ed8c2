"""Tests for ORM-to-domain conversion helpers (no database)."""

from decimal import Decimal

from catalystwatch.database.orm import Prediction, Stock
from catalystwatch.domain.checkpoints import CheckpointType, Direction, build_checkpoint_evaluation
from catalystwatch.domain.scoring import Recommendation
from catalystwatch.repositories.predictions_orm import to_prediction_record
from catalystwatch.repositories.recommendation_history_orm import build_history_row
from catalystwatch.repositories.stocks_orm import to_stock_ref

from conftest import NOW


class TestConversions:
    def test_stock_ref(self):
        stock = Stock(id=4, ticker="NVDA", company_name="NVIDIA", sector=None, is_active=False)
        ref = to_stock_ref(stock)
        assert ref.ticker == "NVDA"
        assert ref.is_active is False

    def test_prediction_record_parses_slots(self):
        evaluation = build_checkpoint_evaluation(100.0, 97.0, "SELL", NOW)
        row = Prediction(
            id=3,
            stock_id=4,
            final_score=Decimal("-41.50"),
            recommendation="SELL",
            confidence="MEDIUM",
            predicted_at=NOW,
            price_at_prediction=Decimal("100.0000"),
            evaluation_5d=evaluation.to_dict(),
        )
        record = to_prediction_record(row)
        assert record.final_score == -41.5
        assert record.recommendation == Recommendation.SELL
        assert record.price_at_prediction == 100.0
        assert record.evaluation_for(CheckpointType.D5).direction == Direction.DOWN
        assert record.evaluation_for(CheckpointType.D10) is None

    def test_history_row(self):
        row = build_history_row(
            4,
            new_recommendation="BUY",
            change_reason="Catalyst-triggered: earnings_beat",
            new_score=35.2,
            previous_recommendation="HOLD",
        )
        assert row.new_score == Decimal("35.2")
        assert row.previous_score is None
        assert row.change_reason == "Catalyst-triggered: earnings_beat"
