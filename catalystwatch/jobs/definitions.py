"""Built-in job definitions for scheduled tasks.

Jobs:
- catalyst_scan: Detect catalysts, then run the monitor (every 6h, Mon-Fri)
- catalyst_monitor: Gate pending catalysts (11:00, 15:00, 21:30, 03:00 UTC Mon-Fri)
- daily_evaluation: Checkpoint evaluation (Mon-Fri 11 PM UTC)
- weekly_analysis: Full re-analysis of all stocks (Sunday 2 AM UTC)
"""

from __future__ import annotations

from functools import partial

from catalystwatch.catalysts.monitor import run_catalyst_monitor, run_catalyst_scan
from catalystwatch.core.logging import get_logger
from catalystwatch.evaluation.service import run_daily_evaluation
from catalystwatch.repositories.stores import SqlCatalystStore, SqlEvaluationStore
from catalystwatch.services import analysis, prices
from catalystwatch.services.finnhub import get_finnhub_client

from .registry import register_job


logger = get_logger("jobs.definitions")


def _catalyst_runner():
    return partial(analysis.run_full_analysis, change_reason="Catalyst re-analysis")


# =============================================================================
# CATALYST PIPELINE
# =============================================================================


@register_job("catalyst_scan")
async def catalyst_scan_job() -> str:
    """Detect catalysts for every active stock, then process pending ones."""
    store = SqlCatalystStore()
    result = await run_catalyst_scan(get_finnhub_client(), store, store, _catalyst_runner())
    return result.to_dict()["message"]


@register_job("catalyst_monitor")
async def catalyst_monitor_job() -> str:
    result = await run_catalyst_monitor(SqlCatalystStore(), _catalyst_runner())
    return result.message


# =============================================================================
# EVALUATION & ANALYSIS
# =============================================================================


@register_job("daily_evaluation")
async def daily_evaluation_job() -> str:
    result = await run_daily_evaluation(SqlEvaluationStore(), prices.fetch_current_price)
    return result.message


@register_job("weekly_analysis")
async def weekly_analysis_job() -> str:
    result = await analysis.run_weekly_analysis()
    if result.failed:
        logger.warning(
            "Weekly analysis finished with failures",
            extra={"failed": [f["ticker"] for f in result.failed]},
        )
    return result.message
