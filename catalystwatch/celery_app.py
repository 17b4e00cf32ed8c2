"""Celery application setup for background jobs."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from catalystwatch.core.config import settings
from catalystwatch.jobs.job_defaults import DEFAULT_SCHEDULES, JOB_PRIORITIES


def _build_task_routes() -> dict[str, dict[str, int | str]]:
    routes: dict[str, dict[str, int | str]] = {}
    for job_name, config in JOB_PRIORITIES.items():
        routes[f"jobs.{job_name}"] = {
            "queue": config["queue"],
            "priority": config["priority"],
        }
    return routes


def cron_to_crontab(expression: str) -> crontab:
    """Convert a five-field cron expression to a Celery ``crontab``."""
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Invalid cron expression: {expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


def build_beat_schedule() -> dict[str, dict]:
    """One beat entry per cron expression; multi-slot jobs get a numeric suffix."""
    schedule: dict[str, dict] = {}
    for job_name, (expressions, _description) in DEFAULT_SCHEDULES.items():
        for index, expression in enumerate(expressions):
            entry = job_name if len(expressions) == 1 else f"{job_name}-{index + 1}"
            schedule[entry] = {
                "task": f"jobs.{job_name}",
                "schedule": cron_to_crontab(expression),
            }
    return schedule


broker_url = os.getenv("CELERY_BROKER_URL", settings.valkey_url)
result_backend = os.getenv("CELERY_RESULT_BACKEND", broker_url)

celery_app = Celery("catalystwatch", broker=broker_url, backend=result_backend)

celery_app.conf.update(
    timezone=settings.scheduler_timezone,
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    task_soft_time_limit=int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", "1800")),
    task_time_limit=int(os.getenv("CELERY_TASK_TIME_LIMIT", "2100")),
    worker_max_tasks_per_child=int(os.getenv("CELERY_MAX_TASKS_PER_CHILD", "100")),
    task_default_queue="default",
    task_default_priority=5,
    task_queue_max_priority=9,
    task_routes=_build_task_routes(),
    broker_transport_options={
        "visibility_timeout": 60 * 60,
        "priority_steps": list(range(10)),
    },
    task_queues=(
        Queue("high", routing_key="high", max_priority=9),
        Queue("default", routing_key="default", max_priority=9),
        Queue("batch", routing_key="batch", max_priority=9),
    ),
    beat_schedule=build_beat_schedule() if settings.scheduler_enabled else {},
)

celery_app.autodiscover_tasks(["catalystwatch.jobs"])
