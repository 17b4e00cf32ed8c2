"""Tests for the five-gate re-analysis trigger pipeline."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from catalystwatch.catalysts.triggers import (
    GATE_BOOTSTRAP,
    GATE_CONFIDENCE,
    GATE_COOLDOWN,
    GATE_IMPACT,
    GATE_PROXIMITY,
    GATE_URGENCY,
    check_boundary_proximity,
    check_confidence,
    check_cooldown,
    check_predicted_impact,
    check_urgency,
    evaluate_catalyst_trigger,
)
from catalystwatch.domain.catalysts import EventType, Urgency

from conftest import NOW, make_recommendation


class TestIndividualGates:
    """Tests for each gate in isolation."""

    @pytest.mark.parametrize("urgency", [Urgency.LOW, Urgency.MEDIUM])
    def test_urgency_rejects_low_and_medium(self, urgency):
        result = check_urgency(urgency)
        assert result.passed is False
        assert result.reason == f"Urgency too low ({urgency.value})"

    @pytest.mark.parametrize("urgency", [Urgency.HIGH, Urgency.CRITICAL])
    def test_urgency_accepts_high_and_critical(self, urgency):
        assert check_urgency(urgency).passed is True

    def test_proximity(self):
        assert check_boundary_proximity(25, Urgency.HIGH).passed is True
        assert check_boundary_proximity(40, Urgency.HIGH).passed is True
        far = check_boundary_proximity(0, Urgency.HIGH)
        assert far.passed is False
        assert far.reason == "Score 0 too far from boundary (30 points)"

    def test_proximity_critical_override(self):
        assert check_boundary_proximity(0, Urgency.CRITICAL).passed is True

    def test_predicted_impact(self):
        weak = check_predicted_impact(EventType.ANALYST_UPGRADE, Urgency.HIGH, 5)
        assert weak.passed is False
        assert weak.reason.startswith("Impact 4.0 insufficient")
        assert check_predicted_impact(EventType.EARNINGS_BEAT, Urgency.HIGH, 5).passed is True

    def test_zero_impact_event_only_passes_when_critical(self):
        assert check_predicted_impact(EventType.MERGER_RUMOR, Urgency.HIGH, 1).passed is False
        assert check_predicted_impact(EventType.MERGER_RUMOR, Urgency.CRITICAL, 30).passed is True

    def test_cooldown_window(self):
        recent = NOW - timedelta(hours=2)
        assert check_cooldown(recent, 0, Urgency.HIGH, NOW).passed is False
        assert check_cooldown(recent, 0, Urgency.CRITICAL, NOW).passed is True
        assert check_cooldown(NOW - timedelta(hours=7), 0, Urgency.HIGH, NOW).passed is True

    def test_daily_cap_binds_critical(self):
        result = check_cooldown(NOW - timedelta(hours=12), 3, Urgency.CRITICAL, NOW)
        assert result.passed is False
        assert result.reason == "Daily limit reached (3 re-analyses in 24h)"

    def test_naive_last_analysis_is_utc(self):
        naive = (NOW - timedelta(hours=1)).replace(tzinfo=None)
        assert check_cooldown(naive, 0, Urgency.HIGH, NOW).passed is False

    def test_confidence_resistance(self):
        assert check_confidence(90, 4, Urgency.HIGH).passed is False
        assert check_confidence(90, -10, Urgency.HIGH).passed is True
        assert check_confidence(90, 4, Urgency.CRITICAL).passed is True
        assert check_confidence(85, 0, Urgency.HIGH).passed is True


class TestEvaluateCatalystTrigger:
    """Tests for the sequential pipeline."""

    @pytest.mark.asyncio
    async def test_bootstrap_without_prior_analysis(self):
        """A stock with no prediction is analyzed regardless of urgency."""
        count = AsyncMock(return_value=0)
        decision = await evaluate_catalyst_trigger(
            1, EventType.GENERAL_POSITIVE_NEWS, Urgency.LOW, AsyncMock(return_value=None), count, NOW
        )
        assert decision.should_trigger is True
        assert [g.gate for g in decision.gate_results] == [GATE_BOOTSTRAP]
        count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_all_gates_pass(self):
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.EARNINGS_BEAT,
            Urgency.HIGH,
            AsyncMock(return_value=make_recommendation(score=25, hours_ago=10)),
            AsyncMock(return_value=0),
            NOW,
        )
        assert decision.should_trigger is True
        assert decision.skip_reason is None
        assert [g.gate for g in decision.gate_results] == [
            GATE_URGENCY,
            GATE_PROXIMITY,
            GATE_IMPACT,
            GATE_COOLDOWN,
            GATE_CONFIDENCE,
        ]
        assert all(g.passed for g in decision.gate_results)

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(self):
        count = AsyncMock(return_value=0)
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.ANALYST_UPGRADE,
            Urgency.HIGH,
            AsyncMock(return_value=make_recommendation(score=25)),
            count,
            NOW,
        )
        assert decision.should_trigger is False
        assert decision.skip_reason.startswith("Impact 4.0 insufficient")
        assert len(decision.gate_results) == 3
        assert decision.gate_results[-1].passed is False
        count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recent_analysis_fails_cooldown(self):
        """Score 28 near the BUY line, earnings miss, analyzed 3h ago."""
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.EARNINGS_MISS,
            Urgency.HIGH,
            AsyncMock(return_value=make_recommendation(score=28, hours_ago=3)),
            AsyncMock(return_value=0),
            NOW,
        )
        assert decision.should_trigger is False
        assert [g.gate for g in decision.gate_results] == [
            GATE_URGENCY,
            GATE_PROXIMITY,
            GATE_IMPACT,
            GATE_COOLDOWN,
        ]
        assert [g.passed for g in decision.gate_results] == [True, True, True, False]
        assert decision.skip_reason == "Cooldown active (3.0h since last analysis)"

    @pytest.mark.asyncio
    async def test_low_urgency_fails_gate_one(self):
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.EARNINGS_BEAT,
            Urgency.MEDIUM,
            AsyncMock(return_value=make_recommendation()),
            AsyncMock(return_value=0),
            NOW,
        )
        assert decision.skip_reason == "Urgency too low (MEDIUM)"
        assert len(decision.gate_results) == 1

    @pytest.mark.asyncio
    async def test_critical_still_hits_daily_cap(self):
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.FDA_APPROVAL,
            Urgency.CRITICAL,
            AsyncMock(return_value=make_recommendation(score=0, hours_ago=1)),
            AsyncMock(return_value=3),
            NOW,
        )
        assert decision.should_trigger is False
        assert decision.gate_results[-1].gate == GATE_COOLDOWN

    @pytest.mark.asyncio
    async def test_high_confidence_resists(self):
        decision = await evaluate_catalyst_trigger(
            1,
            EventType.LEGAL_ACTION,
            Urgency.HIGH,
            AsyncMock(return_value=make_recommendation(score=-26, confidence_pct=90)),
            AsyncMock(return_value=0),
            NOW,
        )
        assert decision.should_trigger is True

        decision = await evaluate_catalyst_trigger(
            1,
            EventType.PRICE_SPIKE_UP,
            Urgency.HIGH,
            AsyncMock(return_value=make_recommendation(score=28, confidence_pct=90)),
            AsyncMock(return_value=0),
            NOW,
        )
        assert decision.should_trigger is False
        assert decision.skip_reason == "High confidence (90%) resists weak catalyst"

    @pytest.mark.asyncio
    async def test_to_dict(self):
        decision = await evaluate_catalyst_trigger(
            1, EventType.EARNINGS_BEAT, Urgency.LOW, AsyncMock(return_value=make_recommendation()),
            AsyncMock(return_value=0), NOW,
        )
        data = decision.to_dict()
        assert data["shouldTrigger"] is False
        assert data["gateResults"][0] == {
            "gate": GATE_URGENCY,
            "passed": False,
            "reason": "Urgency too low (LOW)",
        }
