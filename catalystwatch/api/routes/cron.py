"""Cron-triggered endpoints: catalyst monitor, daily evaluation, weekly analysis.

POST runs the job inline and returns its summary. All POSTs require
``Authorization: Bearer $CRON_SECRET`` when a secret is configured.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalystwatch.api.dependencies import (
    get_analysis_runner,
    get_catalyst_store,
    get_evaluation_store,
    get_price_fetcher,
    require_cron_secret,
)
from catalystwatch.catalysts.monitor import RunFullAnalysis, run_catalyst_monitor
from catalystwatch.catalysts.triggers import (
    BOUNDARY_PROXIMITY_MAX,
    COOLDOWN_HOURS,
    MAX_REANALYSES_PER_DAY,
)
from catalystwatch.core.config import settings
from catalystwatch.core.logging import get_logger
from catalystwatch.evaluation.service import (
    FetchCurrentPrice,
    get_evaluation_stats,
    run_daily_evaluation,
)
from catalystwatch.repositories import catalysts_orm
from catalystwatch.repositories.stores import SqlCatalystStore, SqlEvaluationStore
from catalystwatch.schemas.catalysts import (
    CatalystEventResponse,
    CatalystMonitorResponse,
    CatalystMonitorStatus,
)
from catalystwatch.schemas.predictions import (
    AgentPerformanceResponse,
    DailyEvaluationResponse,
    EvaluationStatsResponse,
)
from catalystwatch.schemas.stocks import WeeklyAnalysisResponse
from catalystwatch.services.analysis import run_weekly_analysis


router = APIRouter(prefix="/cron")

logger = get_logger("api.cron")


MONITOR_SCHEDULE = {
    "frequency": "4x daily on trading days (Mon-Fri)",
    "times": [
        {"time": "11:00 UTC", "purpose": "Pre-market news and analyst actions"},
        {"time": "15:00 UTC", "purpose": "Post-open reactions"},
        {"time": "21:30 UTC", "purpose": "Market close and after-hours earnings"},
        {"time": "03:00 UTC", "purpose": "Evening digest and international news"},
    ],
}


def describe_gate_system() -> dict:
    return {
        "description": "Multi-gate triggering prevents unnecessary re-analyses",
        "gates": [
            {"gate": 1, "name": "Urgency", "rule": "Only HIGH/CRITICAL catalysts pass"},
            {
                "gate": 2,
                "name": "Boundary Proximity",
                "rule": f"Score within {BOUNDARY_PROXIMITY_MAX:g} points of a recommendation boundary",
            },
            {"gate": 3, "name": "Predicted Impact", "rule": "Catalyst impact must reach the boundary"},
            {
                "gate": 4,
                "name": "Cooldown",
                "rule": f"{COOLDOWN_HOURS:g}h minimum, max {MAX_REANALYSES_PER_DAY} re-analyses per day",
            },
            {"gate": 5, "name": "Confidence", "rule": "High confidence resists weak catalysts"},
        ],
        "costSavingsEstimate": f"${settings.reanalysis_cost_usd:.2f} saved per skipped re-analysis",
    }


@router.post(
    "/catalyst-monitor",
    response_model=CatalystMonitorResponse,
    summary="Run catalyst monitor",
    description="Evaluate pending catalysts and re-analyze stocks that pass every gate.",
    dependencies=[Depends(require_cron_secret)],
)
async def run_monitor(
    store: SqlCatalystStore = Depends(get_catalyst_store),
    run_analysis: RunFullAnalysis = Depends(get_analysis_runner),
) -> dict:
    result = await run_catalyst_monitor(store, run_analysis)
    return result.to_dict()


@router.get(
    "/catalyst-monitor",
    response_model=CatalystMonitorStatus,
    summary="Catalyst monitor status",
)
async def monitor_status() -> dict:
    recent = await catalysts_orm.list_recent_catalysts(hours=24, limit=20)
    return {
        "message": "Catalyst monitor cron endpoint. Use POST to trigger.",
        "status": "ready",
        "schedule": MONITOR_SCHEDULE,
        "gateSystem": describe_gate_system(),
        "recentCatalysts": [CatalystEventResponse.model_validate(e) for e in recent],
    }


@router.post(
    "/daily-evaluation",
    response_model=DailyEvaluationResponse,
    summary="Run daily checkpoint evaluation",
    dependencies=[Depends(require_cron_secret)],
)
async def run_evaluation(
    store: SqlEvaluationStore = Depends(get_evaluation_store),
    fetch_price: FetchCurrentPrice = Depends(get_price_fetcher),
) -> dict:
    result = await run_daily_evaluation(store, fetch_price)
    return result.to_dict()


@router.get(
    "/daily-evaluation",
    response_model=EvaluationStatsResponse,
    summary="Checkpoint evaluation statistics",
)
async def evaluation_stats(
    store: SqlEvaluationStore = Depends(get_evaluation_store),
) -> dict:
    pairs = await store.get_predictions_with_stocks()
    performance = await store.list_agent_performance()
    return {
        "message": "Daily evaluation cron endpoint. Use POST to trigger.",
        "stats": get_evaluation_stats([prediction for prediction, _ in pairs]),
        "agentPerformance": [AgentPerformanceResponse.model_validate(p) for p in performance],
    }


@router.post(
    "/weekly-analysis",
    response_model=WeeklyAnalysisResponse,
    summary="Re-analyze all active stocks",
    dependencies=[Depends(require_cron_secret)],
)
async def weekly_analysis() -> dict:
    result = await run_weekly_analysis()
    return result.to_dict()
