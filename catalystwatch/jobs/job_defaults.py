"""Shared defaults for scheduled jobs.

Job Categories:
    1. CATALYST PIPELINE (trading days)
       - catalyst_scan: Pull news and analyst actions, store new catalysts
       - catalyst_monitor: Gate pending catalysts and re-analyze where warranted

    2. DAILY EVALUATION (after US market close)
       - daily_evaluation: Score ready 5d/10d/20d checkpoints

    3. WEEKLY ANALYSIS (Sunday)
       - weekly_analysis: Full multi-agent analysis of every active stock
"""

from __future__ import annotations


# =============================================================================
# SCHEDULE DEFINITIONS
# =============================================================================
# Format: job_name -> (cron_expressions, human_description). All times UTC.

DEFAULT_SCHEDULES: dict[str, tuple[tuple[str, ...], str]] = {
    "catalyst_scan": (
        ("0 */6 * * 1-5",),
        "Detect catalysts from Finnhub news and rating changes for all active stocks. "
        "Every 6 hours on weekdays.",
    ),
    "catalyst_monitor": (
        (
            "0 11 * * 1-5",  # pre-market
            "0 15 * * 1-5",  # post-open
            "30 21 * * 1-5",  # close and after-hours earnings
            "0 3 * * 1-5",  # evening digest
        ),
        "Run pending catalysts through the five gates and re-analyze stocks that pass.",
    ),
    "daily_evaluation": (
        ("0 23 * * 1-5",),
        "Evaluate ready prediction checkpoints and refresh agent performance. Mon-Fri 11 PM.",
    ),
    "weekly_analysis": (
        ("0 2 * * 0",),
        "Full multi-agent re-analysis of every active stock. Sunday 2 AM.",
    ),
}


JOB_PRIORITIES: dict[str, dict[str, int | str]] = {
    "catalyst_monitor": {"queue": "high", "priority": 9},
    "catalyst_scan": {"queue": "high", "priority": 8},
    "daily_evaluation": {"queue": "default", "priority": 6},
    "weekly_analysis": {"queue": "batch", "priority": 5},
}


def get_job_schedule(name: str) -> tuple[tuple[str, ...], str]:
    return DEFAULT_SCHEDULES.get(name, ((), "No description available"))


def get_job_priority(name: str) -> dict[str, int | str]:
    return JOB_PRIORITIES.get(name, {"queue": "default", "priority": 5})
