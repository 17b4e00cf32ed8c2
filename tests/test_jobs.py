"""Tests for the job registry, executor and Celery beat schedule."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from celery.schedules import crontab

import catalystwatch.jobs.definitions as definitions
from catalystwatch.catalysts.monitor import MonitorResult
from catalystwatch.celery_app import _build_task_routes, build_beat_schedule, celery_app, cron_to_crontab
from catalystwatch.core.exceptions import JobError
from catalystwatch.jobs import execute_job, get_job, list_job_names, registry
from catalystwatch.jobs.job_defaults import DEFAULT_SCHEDULES, get_job_priority, get_job_schedule


class TestRegistry:
    """Tests for job registration."""

    def test_builtin_jobs_registered(self):
        assert set(DEFAULT_SCHEDULES) <= set(list_job_names())
        assert get_job("catalyst_monitor") is definitions.catalyst_monitor_job

    def test_unknown_job(self):
        assert get_job("does_not_exist") is None

    def test_defaults_lookup(self):
        expressions, _ = get_job_schedule("catalyst_monitor")
        assert len(expressions) == 4
        assert get_job_schedule("nope") == ((), "No description available")
        assert get_job_priority("weekly_analysis") == {"queue": "batch", "priority": 5}
        assert get_job_priority("nope") == {"queue": "default", "priority": 5}


class TestExecutor:
    """Tests for execute_job."""

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self):
        with pytest.raises(JobError) as exc_info:
            await execute_job("does_not_exist")
        assert exc_info.value.error_code == "UNKNOWN_JOB"

    @pytest.mark.asyncio
    async def test_async_job_message(self, monkeypatch):
        async def job():
            return "Processed 3 stocks"

        monkeypatch.setitem(registry._registry, "test_async", job)
        assert await execute_job("test_async") == "Processed 3 stocks"

    @pytest.mark.asyncio
    async def test_sync_job_without_result(self, monkeypatch):
        monkeypatch.setitem(registry._registry, "test_sync", lambda: None)
        assert await execute_job("test_sync") == "Completed"

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self, monkeypatch):
        async def job():
            raise RuntimeError("database unavailable")

        monkeypatch.setitem(registry._registry, "test_fail", job)
        with pytest.raises(JobError) as exc_info:
            await execute_job("test_fail")
        assert exc_info.value.error_code == "JOB_EXECUTION_FAILED"
        assert exc_info.value.details["job_name"] == "test_fail"
        assert "database unavailable" in exc_info.value.message


class TestJobDefinitions:
    """Tests for the built-in job bodies."""

    @pytest.mark.asyncio
    async def test_monitor_job_uses_catalyst_runner(self):
        result = MonitorResult(message="No new catalysts to process")
        with patch.object(definitions, "run_catalyst_monitor", AsyncMock(return_value=result)) as run:
            message = await definitions.catalyst_monitor_job()
        assert message == "No new catalysts to process"
        runner = run.await_args.args[1]
        assert runner.keywords == {"change_reason": "Catalyst re-analysis"}

    @pytest.mark.asyncio
    async def test_daily_evaluation_job(self):
        result = SimpleNamespace(message="No predictions found to evaluate")
        with patch.object(definitions, "run_daily_evaluation", AsyncMock(return_value=result)):
            assert await definitions.daily_evaluation_job() == "No predictions found to evaluate"


class TestBeatSchedule:
    """Tests for the static Celery beat schedule."""

    def test_cron_conversion(self):
        assert cron_to_crontab("30 21 * * 1-5") == crontab(minute="30", hour="21", day_of_week="1-5")

    def test_invalid_cron(self):
        with pytest.raises(ValueError):
            cron_to_crontab("0 11 * *")

    def test_entries(self):
        schedule = build_beat_schedule()
        assert set(schedule) == {
            "catalyst_scan",
            "catalyst_monitor-1",
            "catalyst_monitor-2",
            "catalyst_monitor-3",
            "catalyst_monitor-4",
            "daily_evaluation",
            "weekly_analysis",
        }
        assert schedule["catalyst_monitor-3"]["task"] == "jobs.catalyst_monitor"
        assert schedule["weekly_analysis"]["schedule"] == crontab(minute="0", hour="2", day_of_week="0")

    def test_task_routes(self):
        routes = _build_task_routes()
        assert routes["jobs.catalyst_monitor"] == {"queue": "high", "priority": 9}
        assert routes["jobs.daily_evaluation"]["queue"] == "default"

    def test_tasks_registered(self):
        import catalystwatch.jobs.tasks  # noqa: F401

        for name in DEFAULT_SCHEDULES:
            assert f"jobs.{name}" in celery_app.tasks
