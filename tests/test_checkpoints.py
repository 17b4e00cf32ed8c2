"""Tests for checkpoint timing and accuracy math."""

from datetime import UTC, datetime, timedelta

import pytest

from catalystwatch.domain.checkpoints import (
    CheckpointEvaluation,
    CheckpointStatusValue,
    CheckpointType,
    Direction,
    build_checkpoint_evaluation,
    calculate_days_elapsed_utc,
    calculate_directional_accuracy,
    determine_direction,
    get_checkpoint_config,
    get_checkpoint_status,
    get_days_remaining,
    is_checkpoint_ready,
    primary_checkpoint,
)
from catalystwatch.domain.scoring import Recommendation

from conftest import NOW


class TestCheckpointConfig:
    """Tests for checkpoint configuration lookups."""

    def test_primary_is_ten_day(self):
        assert primary_checkpoint().type == CheckpointType.D10

    def test_lookup_by_value(self):
        config = get_checkpoint_config("20d")
        assert config is not None
        assert config.trading_days == 20
        assert config.is_primary is False

    def test_unknown_checkpoint(self):
        assert get_checkpoint_config("15d") is None

    def test_field_name(self):
        assert CheckpointType.D10.field_name == "evaluation_10d"


class TestElapsedTime:
    """Tests for UTC elapsed-day math."""

    def test_fractional_days(self):
        assert calculate_days_elapsed_utc(NOW - timedelta(hours=36), NOW) == 1.5

    def test_never_negative(self):
        assert calculate_days_elapsed_utc(NOW + timedelta(days=1), NOW) == 0.0

    def test_seconds_are_truncated(self):
        predicted = datetime(2026, 3, 10, 14, 59, 59, tzinfo=UTC)
        assert calculate_days_elapsed_utc(predicted, NOW) == pytest.approx(1 / 1440)

    def test_naive_timestamps_are_utc(self):
        naive = (NOW - timedelta(days=2)).replace(tzinfo=None)
        assert calculate_days_elapsed_utc(naive, NOW) == 2.0


class TestReadiness:
    """Tests for the ready buffer and status derivation."""

    def test_ready_inside_buffer(self):
        predicted = NOW - timedelta(days=4, hours=21)
        assert is_checkpoint_ready(predicted, CheckpointType.D5, False, NOW) is True

    def test_not_ready_before_buffer(self):
        predicted = NOW - timedelta(days=4, hours=19)
        assert is_checkpoint_ready(predicted, CheckpointType.D5, False, NOW) is False

    def test_evaluated_is_never_ready(self):
        predicted = NOW - timedelta(days=30)
        assert is_checkpoint_ready(predicted, CheckpointType.D5, True, NOW) is False

    def test_days_remaining_rounds_up(self):
        predicted = NOW - timedelta(days=4, hours=19)
        assert get_days_remaining(predicted, CheckpointType.D5, NOW) == 1
        assert get_days_remaining(NOW - timedelta(days=6), CheckpointType.D10, NOW) == 4

    def test_days_remaining_floor_zero(self):
        assert get_days_remaining(NOW - timedelta(days=40), CheckpointType.D20, NOW) == 0

    def test_ten_day_checkpoint_at_exactly_ten_days(self):
        predicted = NOW - timedelta(days=10)
        assert is_checkpoint_ready(predicted, CheckpointType.D10, False, NOW) is True
        assert get_checkpoint_status(predicted, CheckpointType.D10, False, NOW) == CheckpointStatusValue.READY

    def test_ten_day_checkpoint_at_nine_and_a_half_days(self):
        predicted = NOW - timedelta(days=9, hours=12)
        assert get_checkpoint_status(predicted, CheckpointType.D10, False, NOW) == CheckpointStatusValue.PENDING
        assert get_days_remaining(predicted, CheckpointType.D10, NOW) == 1

    def test_status(self):
        predicted = NOW - timedelta(days=6)
        assert get_checkpoint_status(predicted, CheckpointType.D5, False, NOW) == CheckpointStatusValue.READY
        assert get_checkpoint_status(predicted, CheckpointType.D10, False, NOW) == CheckpointStatusValue.PENDING
        assert get_checkpoint_status(predicted, CheckpointType.D20, True, NOW) == CheckpointStatusValue.EVALUATED


class TestDirection:
    """Tests for the flat band and directional accuracy."""

    @pytest.mark.parametrize(
        "return_pct,expected",
        [
            (0.51, Direction.UP),
            (0.5, Direction.FLAT),
            (0.0, Direction.FLAT),
            (-0.5, Direction.FLAT),
            (-0.51, Direction.DOWN),
        ],
    )
    def test_determine_direction(self, return_pct, expected):
        assert determine_direction(return_pct) == expected

    def test_accuracy(self):
        assert calculate_directional_accuracy(Recommendation.BUY, Direction.UP) is True
        assert calculate_directional_accuracy("HOLD", Direction.FLAT) is True
        assert calculate_directional_accuracy("SELL", Direction.UP) is False

    def test_unknown_recommendation_is_inaccurate(self):
        assert calculate_directional_accuracy("STRONG_BUY", Direction.UP) is False


class TestBuildEvaluation:
    """Tests for build_checkpoint_evaluation."""

    def test_rounds_return(self):
        evaluation = build_checkpoint_evaluation(100.0, 103.456, "BUY", NOW)
        assert evaluation.return_pct == 3.46
        assert evaluation.direction == Direction.UP
        assert evaluation.directional_accuracy is True
        assert evaluation.evaluated_at == NOW

    def test_direction_uses_unrounded_return(self):
        evaluation = build_checkpoint_evaluation(100.0, 100.504, "HOLD", NOW)
        assert evaluation.return_pct == 0.5
        assert evaluation.direction == Direction.UP
        assert evaluation.directional_accuracy is False

    def test_stored_shape(self):
        evaluation = build_checkpoint_evaluation(200.0, 190.0, "SELL", NOW)
        data = evaluation.to_dict()
        assert data == {
            "price": 190.0,
            "returnPct": -5.0,
            "direction": "DOWN",
            "directionalAccuracy": True,
            "evaluatedAt": NOW.isoformat(),
        }
        assert CheckpointEvaluation.from_dict(data) == evaluation
