"""Celery tasks for background jobs."""

from __future__ import annotations

import asyncio
from typing import Any

import catalystwatch.jobs.definitions  # noqa: F401 - register jobs
from catalystwatch.celery_app import celery_app
from catalystwatch.core.logging import get_logger
from catalystwatch.jobs.executor import execute_job


logger = get_logger("jobs.celery_tasks")

# Per-worker event loop for Celery prefork pool
_worker_loop: asyncio.AbstractEventLoop | None = None


def _get_worker_loop() -> asyncio.AbstractEventLoop:
    """Get or create a persistent event loop for the worker process."""
    global _worker_loop
    if _worker_loop is None or _worker_loop.is_closed():
        _worker_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_worker_loop)
    return _worker_loop


def _run_async(coro: Any) -> Any:
    """Run a coroutine on the worker's loop.

    The SQLAlchemy engine is bound to the loop it was created on, so every
    task in a worker process shares one loop.
    """
    loop = _get_worker_loop()
    return loop.run_until_complete(coro)


def _run_job(job_name: str) -> str:
    return _run_async(execute_job(job_name))


@celery_app.task(name="jobs.catalyst_scan")
def catalyst_scan_task() -> str:
    return _run_job("catalyst_scan")


@celery_app.task(name="jobs.catalyst_monitor")
def catalyst_monitor_task() -> str:
    return _run_job("catalyst_monitor")


@celery_app.task(name="jobs.daily_evaluation")
def daily_evaluation_task() -> str:
    return _run_job("daily_evaluation")


@celery_app.task(name="jobs.weekly_analysis")
def weekly_analysis_task() -> str:
    return _run_job("weekly_analysis")
