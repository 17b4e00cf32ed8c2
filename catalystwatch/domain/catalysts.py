"""Catalyst taxonomy: event types, urgency levels and impact estimates."""

from __future__ import annotations

from enum import Enum


class Urgency(str, Enum):
    """Four-level severity attached to every catalyst."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return URGENCY_RANK[self]


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

    @classmethod
    def coerce(cls, value: object) -> "Sentiment":
        """Lenient parse; anything unrecognized is neutral."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NEUTRAL


class EventType(str, Enum):
    """Closed set of catalyst event types."""

    EARNINGS_BEAT = "earnings_beat"
    EARNINGS_MISS = "earnings_miss"
    EARNINGS_REPORT = "earnings_report"
    ANALYST_UPGRADE = "analyst_upgrade"
    ANALYST_DOWNGRADE = "analyst_downgrade"
    ANALYST_UPDATE = "analyst_update"
    FDA_APPROVAL = "fda_approval"
    FDA_REJECTION = "fda_rejection"
    FDA_UPDATE = "fda_update"
    MERGER_ANNOUNCEMENT = "merger_announcement"
    MERGER_FAILED = "merger_failed"
    MERGER_RUMOR = "merger_rumor"
    LEADERSHIP_HIRE = "leadership_hire"
    LEADERSHIP_DEPARTURE = "leadership_departure"
    LEADERSHIP_CHANGE = "leadership_change"
    LEGAL_VICTORY = "legal_victory"
    LEGAL_ACTION = "legal_action"
    LEGAL_UPDATE = "legal_update"
    PRODUCT_LAUNCH = "product_launch"
    PRODUCT_RECALL = "product_recall"
    PRODUCT_UPDATE = "product_update"
    CONTRACT_WIN = "contract_win"
    CONTRACT_LOSS = "contract_loss"
    INSIDER_BUYING = "insider_buying"
    INSIDER_SELLING = "insider_selling"
    PRICE_SPIKE_UP = "price_spike_up"
    PRICE_SPIKE_DOWN = "price_spike_down"
    GENERAL_POSITIVE_NEWS = "general_positive_news"
    GENERAL_NEGATIVE_NEWS = "general_negative_news"

    @classmethod
    def parse(cls, value: str | None) -> "EventType | None":
        """Parse a stored value; None for anything outside the taxonomy."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


URGENCY_RANK: dict[Urgency, int] = {
    Urgency.LOW: 1,
    Urgency.MEDIUM: 2,
    Urgency.HIGH: 3,
    Urgency.CRITICAL: 4,
}

URGENCY_MULTIPLIER: dict[Urgency, float] = {
    Urgency.CRITICAL: 1.5,
    Urgency.HIGH: 1.0,
    Urgency.MEDIUM: 0.7,
    Urgency.LOW: 0.5,
}

# Signed base impact on the consensus score, per event type.
# Neutral "update" style events carry an explicit zero.
CATALYST_IMPACT: dict[EventType, float] = {
    EventType.EARNINGS_BEAT: 10,
    EventType.EARNINGS_MISS: -10,
    EventType.EARNINGS_REPORT: 0,
    EventType.ANALYST_UPGRADE: 4,
    EventType.ANALYST_DOWNGRADE: -4,
    EventType.ANALYST_UPDATE: 0,
    EventType.FDA_APPROVAL: 12,
    EventType.FDA_REJECTION: -15,
    EventType.FDA_UPDATE: 0,
    EventType.MERGER_ANNOUNCEMENT: 12,
    EventType.MERGER_FAILED: -12,
    EventType.MERGER_RUMOR: 0,
    EventType.LEADERSHIP_HIRE: 3,
    EventType.LEADERSHIP_DEPARTURE: -5,
    EventType.LEADERSHIP_CHANGE: -3,
    EventType.LEGAL_VICTORY: 5,
    EventType.LEGAL_ACTION: -8,
    EventType.LEGAL_UPDATE: 0,
    EventType.PRODUCT_LAUNCH: 5,
    EventType.PRODUCT_RECALL: -8,
    EventType.PRODUCT_UPDATE: 0,
    EventType.CONTRACT_WIN: 8,
    EventType.CONTRACT_LOSS: -8,
    EventType.INSIDER_BUYING: 3,
    EventType.INSIDER_SELLING: -2,
    EventType.PRICE_SPIKE_UP: 5,
    EventType.PRICE_SPIKE_DOWN: -5,
    EventType.GENERAL_POSITIVE_NEWS: 2,
    EventType.GENERAL_NEGATIVE_NEWS: -2,
}


def estimate_catalyst_impact(event_type: EventType, urgency: Urgency) -> float:
    """Expected score movement: base impact scaled by urgency."""
    return CATALYST_IMPACT[event_type] * URGENCY_MULTIPLIER[urgency]
