"""Keyword classification of news articles and analyst actions into catalysts.

Everything here is pure: no I/O, no clock reads unless a ``now`` is omitted.
Malformed input never raises; missing fields behave as empty strings and
unknown sentiment as neutral.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from catalystwatch.domain.catalysts import EventType, Sentiment, Urgency
from catalystwatch.domain.models import RecentCatalyst


@dataclass(frozen=True)
class NewsArticle:
    headline: str = ""
    summary: str = ""
    source: str = ""
    url: str = ""
    published_at: datetime | None = None
    sentiment: Sentiment = Sentiment.NEUTRAL


@dataclass(frozen=True)
class RatingChange:
    company: str = ""
    action: str = ""
    from_grade: str = ""
    to_grade: str = ""
    graded_at: datetime | None = None


@dataclass(frozen=True)
class Classification:
    event_type: EventType
    urgency: Urgency
    impact_score: int


@dataclass(frozen=True)
class CatalystCandidate:
    """A classified event ready to be stored as a pending catalyst."""

    stock_id: int
    ticker: str
    event_type: EventType
    urgency: Urgency
    description: str
    source_url: str | None
    impact_score: int

    def to_dict(self) -> dict:
        return {
            "stockId": self.stock_id,
            "ticker": self.ticker,
            "eventType": self.event_type.value,
            "urgency": self.urgency.value,
            "description": self.description,
            "sourceUrl": self.source_url,
            "impactScore": self.impact_score,
        }


@dataclass(frozen=True)
class _CategoryRule:
    name: str
    keywords: tuple[str, ...]
    base_urgency: Urgency
    positive: EventType
    negative: EventType
    neutral: EventType

    def event_type_for(self, sentiment: Sentiment) -> EventType:
        if sentiment == Sentiment.POSITIVE:
            return self.positive
        if sentiment == Sentiment.NEGATIVE:
            return self.negative
        return self.neutral


# Evaluated in order; the first category with any keyword hit wins.
CATEGORY_RULES: tuple[_CategoryRule, ...] = (
    _CategoryRule(
        "earnings",
        ("earnings", "quarterly results", "q1", "q2", "q3", "q4", "eps", "revenue beat", "revenue miss"),
        Urgency.HIGH,
        EventType.EARNINGS_BEAT, EventType.EARNINGS_MISS, EventType.EARNINGS_REPORT,
    ),
    _CategoryRule(
        "analyst",
        ("upgrade", "downgrade", "price target", "rating", "analyst"),
        Urgency.MEDIUM,
        EventType.ANALYST_UPGRADE, EventType.ANALYST_DOWNGRADE, EventType.ANALYST_UPDATE,
    ),
    _CategoryRule(
        "fda",
        ("fda", "approval", "drug", "clinical trial", "phase"),
        Urgency.CRITICAL,
        EventType.FDA_APPROVAL, EventType.FDA_REJECTION, EventType.FDA_UPDATE,
    ),
    _CategoryRule(
        "merger",
        ("merger", "acquisition", "buyout", "takeover", "m&a"),
        Urgency.CRITICAL,
        EventType.MERGER_ANNOUNCEMENT, EventType.MERGER_FAILED, EventType.MERGER_RUMOR,
    ),
    _CategoryRule(
        "leadership",
        ("ceo", "cfo", "executive", "resign", "appoint", "leadership"),
        Urgency.MEDIUM,
        EventType.LEADERSHIP_HIRE, EventType.LEADERSHIP_DEPARTURE, EventType.LEADERSHIP_CHANGE,
    ),
    _CategoryRule(
        "legal",
        ("lawsuit", "investigation", "sec", "doj", "fraud", "settlement"),
        Urgency.HIGH,
        EventType.LEGAL_VICTORY, EventType.LEGAL_ACTION, EventType.LEGAL_UPDATE,
    ),
    _CategoryRule(
        "product",
        ("launch", "new product", "release", "recall", "partnership"),
        Urgency.MEDIUM,
        EventType.PRODUCT_LAUNCH, EventType.PRODUCT_RECALL, EventType.PRODUCT_UPDATE,
    ),
)

MAX_IMPACT_SCORE = 50
RATING_CHANGE_IMPACT = 20
RATING_CHANGE_WINDOW = timedelta(days=2)
DEDUPE_WINDOW = timedelta(hours=24)
DEDUPE_PREFIX_CHARS = 50
MAX_DESCRIPTION_CHARS = 500

POSITIVE_WORDS = (
    "surge", "soar", "jump", "gain", "rise", "beat", "upgrade", "bullish", "rally",
    "growth", "profit", "record", "breakthrough", "strong", "outperform", "buy", "boost",
)
NEGATIVE_WORDS = (
    "fall", "drop", "plunge", "decline", "miss", "downgrade", "bearish", "sell", "loss",
    "weak", "cut", "layoff", "lawsuit", "investigation", "warning", "concern", "slump",
)


def analyze_sentiment(headline: str | None, summary: str | None) -> Sentiment:
    """Keyword-count sentiment: the side with more distinct hits wins, ties are neutral."""
    text = f"{headline or ''} {summary or ''}".lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in text)
    negative = sum(1 for word in NEGATIVE_WORDS if word in text)
    if positive > negative:
        return Sentiment.POSITIVE
    if negative > positive:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def classify_article(article: NewsArticle) -> Classification | None:
    """Classify one article, or None when it is neutral and matches no category.

    Keyword matching is plain substring search, so "sec" also hits inside
    "second" and "q1" inside "q10".
    """
    text = f"{article.headline or ''} {article.summary or ''}".lower()
    sentiment = Sentiment.coerce(article.sentiment)

    for rule in CATEGORY_RULES:
        matches = sum(1 for keyword in rule.keywords if keyword in text)
        if matches < 1:
            continue

        urgency = rule.base_urgency
        impact = matches * 10
        if sentiment == Sentiment.POSITIVE:
            impact += 15
        elif sentiment == Sentiment.NEGATIVE:
            impact += 20
            if urgency == Urgency.MEDIUM:
                urgency = Urgency.HIGH
        if matches >= 3 and urgency == Urgency.MEDIUM:
            urgency = Urgency.HIGH

        return Classification(
            event_type=rule.event_type_for(sentiment),
            urgency=urgency,
            impact_score=min(impact, MAX_IMPACT_SCORE),
        )

    if sentiment == Sentiment.POSITIVE:
        return Classification(EventType.GENERAL_POSITIVE_NEWS, Urgency.LOW, 10)
    if sentiment == Sentiment.NEGATIVE:
        return Classification(EventType.GENERAL_NEGATIVE_NEWS, Urgency.MEDIUM, 15)
    return None


def classify_rating_change(
    change: RatingChange, now: datetime | None = None
) -> tuple[Classification, str] | None:
    """Classify an analyst action from the last two days.

    Returns the classification and its description, or None for stale,
    undated or non up/downgrade actions (initiations, reiterations).
    """
    if change.graded_at is None:
        return None
    current = now or datetime.now(UTC)
    graded_at = change.graded_at
    if graded_at.tzinfo is None:
        graded_at = graded_at.replace(tzinfo=UTC)
    if graded_at < current - RATING_CHANGE_WINDOW:
        return None

    action = (change.action or "").lower()
    if "upgrade" in action:
        event_type = EventType.ANALYST_UPGRADE
    elif "downgrade" in action:
        event_type = EventType.ANALYST_DOWNGRADE
    else:
        return None

    description = f"{change.company}: {change.action} from {change.from_grade} to {change.to_grade}"
    return Classification(event_type, Urgency.MEDIUM, RATING_CHANGE_IMPACT), description


def is_duplicate_description(candidate: str, existing: str) -> bool:
    """Prefix-overlap heuristic, case-insensitive, checked in both directions."""
    candidate_lower = (candidate or "").lower()
    existing_lower = (existing or "").lower()
    return (
        existing_lower[:DEDUPE_PREFIX_CHARS] in candidate_lower
        or candidate_lower[:DEDUPE_PREFIX_CHARS] in existing_lower
    )


def is_duplicate(
    stock_id: int,
    event_type: EventType,
    description: str,
    recent: Iterable[RecentCatalyst],
    now: datetime | None = None,
) -> bool:
    """True when a same-stock, same-type catalyst from the last 24h overlaps."""
    current = now or datetime.now(UTC)
    cutoff = current - DEDUPE_WINDOW
    for existing in recent:
        if existing.stock_id != stock_id or existing.event_type != event_type.value:
            continue
        detected_at = existing.detected_at
        if detected_at.tzinfo is None:
            detected_at = detected_at.replace(tzinfo=UTC)
        if detected_at < cutoff:
            continue
        if is_duplicate_description(description, existing.description):
            return True
    return False


def build_candidates(
    stock_id: int,
    ticker: str,
    articles: Iterable[NewsArticle],
    rating_changes: Iterable[RatingChange],
    recent: Iterable[RecentCatalyst],
    now: datetime | None = None,
) -> list[CatalystCandidate]:
    """Classify a stock's news and rating changes into deduplicated candidates.

    Candidates are checked against ``recent`` (already stored catalysts) and
    against each other, so one scan never yields two overlapping events.
    """
    current = now or datetime.now(UTC)
    seen = list(recent)
    candidates: list[CatalystCandidate] = []

    def _accept(classification: Classification, description: str, source_url: str | None) -> None:
        if is_duplicate(stock_id, classification.event_type, description, seen, current):
            return
        candidates.append(
            CatalystCandidate(
                stock_id=stock_id,
                ticker=ticker,
                event_type=classification.event_type,
                urgency=classification.urgency,
                description=description,
                source_url=source_url,
                impact_score=classification.impact_score,
            )
        )
        seen.append(
            RecentCatalyst(
                stock_id=stock_id,
                event_type=classification.event_type.value,
                description=description,
                detected_at=current,
            )
        )

    for article in articles:
        classification = classify_article(article)
        if classification is None:
            continue
        headline = (article.headline or "")[:MAX_DESCRIPTION_CHARS]
        _accept(classification, headline, article.url or None)

    for change in rating_changes:
        result = classify_rating_change(change, current)
        if result is None:
            continue
        classification, description = result
        _accept(classification, description, None)

    return candidates
