"""Checkpoint timing and accuracy math.

A prediction is re-scored at three fixed horizons after it was made. All
elapsed-time math runs in UTC at minute precision so the API and the
scheduled evaluation agree on when a checkpoint becomes ready.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .scoring import Recommendation


class CheckpointType(str, Enum):
    D5 = "5d"
    D10 = "10d"
    D20 = "20d"

    @property
    def field_name(self) -> str:
        """ORM attribute holding this checkpoint's evaluation."""
        return f"evaluation_{self.value}"


class CheckpointStatusValue(str, Enum):
    PENDING = "pending"
    READY = "ready"
    EVALUATED = "evaluated"


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"


@dataclass(frozen=True)
class CheckpointConfig:
    type: CheckpointType
    trading_days: int
    is_primary: bool


CHECKPOINT_CONFIGS: tuple[CheckpointConfig, ...] = (
    CheckpointConfig(CheckpointType.D5, 5, is_primary=False),
    CheckpointConfig(CheckpointType.D10, 10, is_primary=True),
    CheckpointConfig(CheckpointType.D20, 20, is_primary=False),
)

CHECKPOINT_THRESHOLDS: dict[CheckpointType, int] = {
    c.type: c.trading_days for c in CHECKPOINT_CONFIGS
}

# Ready when within this many hours of the nominal threshold
READY_BUFFER_HOURS = 4

# +/- band (in percent) treated as no movement
FLAT_BAND_PCT = 0.5


def get_checkpoint_config(checkpoint: CheckpointType | str) -> CheckpointConfig | None:
    try:
        checkpoint_type = CheckpointType(checkpoint)
    except ValueError:
        return None
    for config in CHECKPOINT_CONFIGS:
        if config.type == checkpoint_type:
            return config
    return None


def primary_checkpoint() -> CheckpointConfig:
    return next(c for c in CHECKPOINT_CONFIGS if c.is_primary)


def _as_utc_minute(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(second=0, microsecond=0)


def calculate_days_elapsed_utc(predicted_at: datetime, now: datetime | None = None) -> float:
    """Fractional days since ``predicted_at`` (never negative)."""
    current = _as_utc_minute(now or datetime.now(UTC))
    diff = current - _as_utc_minute(predicted_at)
    return max(0.0, diff.total_seconds() / 86400)


def is_checkpoint_ready(
    predicted_at: datetime,
    checkpoint: CheckpointType,
    has_evaluation: bool,
    now: datetime | None = None,
) -> bool:
    if has_evaluation:
        return False
    elapsed = calculate_days_elapsed_utc(predicted_at, now)
    buffer_days = READY_BUFFER_HOURS / 24
    return elapsed >= CHECKPOINT_THRESHOLDS[checkpoint] - buffer_days


def get_days_elapsed_display(predicted_at: datetime, now: datetime | None = None) -> int:
    return math.floor(calculate_days_elapsed_utc(predicted_at, now))


def get_days_remaining(
    predicted_at: datetime,
    checkpoint: CheckpointType,
    now: datetime | None = None,
) -> int:
    remaining = CHECKPOINT_THRESHOLDS[checkpoint] - calculate_days_elapsed_utc(predicted_at, now)
    return max(0, math.ceil(remaining))


def get_checkpoint_status(
    predicted_at: datetime,
    checkpoint: CheckpointType,
    has_evaluation: bool,
    now: datetime | None = None,
) -> CheckpointStatusValue:
    if has_evaluation:
        return CheckpointStatusValue.EVALUATED
    if is_checkpoint_ready(predicted_at, checkpoint, False, now):
        return CheckpointStatusValue.READY
    return CheckpointStatusValue.PENDING


def determine_direction(return_pct: float) -> Direction:
    """UP above +0.5%, DOWN below -0.5%, FLAT otherwise (bounds inclusive)."""
    if return_pct > FLAT_BAND_PCT:
        return Direction.UP
    if return_pct < -FLAT_BAND_PCT:
        return Direction.DOWN
    return Direction.FLAT


_EXPECTED_DIRECTION: dict[Recommendation, Direction] = {
    Recommendation.BUY: Direction.UP,
    Recommendation.SELL: Direction.DOWN,
    Recommendation.HOLD: Direction.FLAT,
}


def calculate_directional_accuracy(
    recommendation: Recommendation | str, direction: Direction
) -> bool:
    try:
        rec = Recommendation(recommendation)
    except ValueError:
        return False
    return _EXPECTED_DIRECTION[rec] == direction


def calculate_return_pct(price_at_prediction: float, current_price: float) -> float:
    return (current_price - price_at_prediction) / price_at_prediction * 100


@dataclass(frozen=True)
class CheckpointEvaluation:
    """Realized outcome of a prediction at one checkpoint."""

    price: float
    return_pct: float
    direction: Direction
    directional_accuracy: bool
    evaluated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """JSON shape stored in the prediction's checkpoint slot."""
        return {
            "price": self.price,
            "returnPct": self.return_pct,
            "direction": self.direction.value,
            "directionalAccuracy": self.directional_accuracy,
            "evaluatedAt": self.evaluated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CheckpointEvaluation":
        return cls(
            price=float(data["price"]),
            return_pct=float(data["returnPct"]),
            direction=Direction(data["direction"]),
            directional_accuracy=bool(data["directionalAccuracy"]),
            evaluated_at=datetime.fromisoformat(data["evaluatedAt"]),
        )


def build_checkpoint_evaluation(
    price_at_prediction: float,
    current_price: float,
    recommendation: Recommendation | str,
    evaluated_at: datetime | None = None,
) -> CheckpointEvaluation:
    """Compute return, direction and accuracy for a matured checkpoint.

    Direction is classified on the unrounded return; the stored return is
    rounded to two decimals.
    """
    return_pct = calculate_return_pct(price_at_prediction, current_price)
    direction = determine_direction(return_pct)
    return CheckpointEvaluation(
        price=current_price,
        return_pct=round(return_pct, 2),
        direction=direction,
        directional_accuracy=calculate_directional_accuracy(recommendation, direction),
        evaluated_at=evaluated_at or datetime.now(UTC),
    )
