"""Tests for the periodic task runner and job registry."""

import asyncio
import time
from contextlib import nullcontext
from datetime import datetime, timezone

import pytest

from staffing.db.enums import JobName, NotificationType
from staffing.db.models import Notification
from staffing.jobs.registry import JOB_HANDLERS, JobRun, resolve_job_handler
from staffing.jobs.scheduler import (
    PeriodicTaskRunner,
    default_schedule,
    load_schedule,
    next_run_after,
    validate_cron,
)
from staffing.services import settings_service

UTC = timezone.utc


def _runner(handlers, schedule=None):
    return PeriodicTaskRunner(lambda: nullcontext(None), schedule=schedule or {}, handlers=handlers, tz_name="UTC")


# =============================================================================
# Cron helpers
# =============================================================================


def test_default_schedule():
    schedule = default_schedule()

    assert schedule[JobName.EVENT_REMINDERS.value] == "0 6 * * *"
    assert schedule[JobName.ANOMALY_DETECTION.value] == "0 */6 * * *"
    assert schedule[JobName.COUNSELLOR_OVERLOAD.value] == "*/15 * * * *"
    assert schedule[JobName.NOTIFICATION_CLEANUP.value] == "0 * * * *"
    assert schedule[JobName.WEEKLY_REPORT.value] == "0 7 * * 1"
    assert default_schedule(7)[JobName.WEEKLY_REPORT.value] == "0 7 * * 0"
    assert set(schedule) == set(JOB_HANDLERS)


def test_load_schedule_reads_report_day(db):
    settings_service.update_settings(db, {settings_service.WEEKLY_REPORT_DAY: 3})

    assert load_schedule(db)[JobName.WEEKLY_REPORT.value] == "0 7 * * 3"


def test_validate_cron():
    assert validate_cron("*/15 * * * *")
    assert not validate_cron("not a cron")


def test_next_run_is_strictly_after_base():
    base = datetime(2026, 3, 10, 6, 0, tzinfo=UTC)

    assert next_run_after("0 6 * * *", base) == datetime(2026, 3, 11, 6, 0, tzinfo=UTC)


def test_next_run_in_local_timezone():
    base = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)

    # 06:00 in Paris (UTC+1 before the March switch)
    assert next_run_after("0 6 * * *", base, "Europe/Paris") == datetime(2026, 3, 11, 5, 0, tzinfo=UTC)


# =============================================================================
# Registry
# =============================================================================


def test_resolve_job_handler():
    assert resolve_job_handler("weekly_report") is JOB_HANDLERS["weekly_report"]
    with pytest.raises(ValueError):
        resolve_job_handler("nope")


def test_job_run_defaults():
    run = JobRun(name="x", scheduled_for=datetime(2026, 1, 2, 23, 0, tzinfo=UTC))

    assert run.today.isoformat() == "2026-01-02"
    assert run.payload == {}
    assert len(run.run_id) == 12


# =============================================================================
# Runner
# =============================================================================


def test_add_task_validation():
    runner = _runner({"ok": None})

    with pytest.raises(ValueError):
        runner.add_task("missing", "* * * * *")
    with pytest.raises(ValueError):
        runner.add_task("ok", "bad cron")


async def test_unknown_job_raises():
    with pytest.raises(ValueError):
        await _runner({}).run_task("missing")


async def test_same_job_never_overlaps():
    gate = asyncio.Event()
    calls = []

    async def slow(db, job):
        calls.append(job.run_id)
        await gate.wait()
        return "done"

    runner = _runner({"slow": slow})
    first = asyncio.create_task(runner.run_task("slow"))
    await asyncio.sleep(0)

    assert runner.is_running("slow")
    assert await runner.run_task("slow") is False

    gate.set()
    assert await first is True
    assert len(calls) == 1
    assert runner.tasks["slow"].last_result == "done"
    assert not runner.is_running("slow")


async def test_different_jobs_run_concurrently():
    gate = asyncio.Event()
    running = set()

    def make(name):
        async def handler(db, job):
            running.add(name)
            await gate.wait()
        return handler

    runner = _runner({"a": make("a"), "b": make("b")})
    tasks = [asyncio.create_task(runner.run_task(n)) for n in ("a", "b")]
    await asyncio.sleep(0)

    assert running == {"a", "b"}
    gate.set()
    assert await asyncio.gather(*tasks) == [True, True]


async def test_blocking_service_work_leaves_event_loop_free(monkeypatch):
    from staffing.services import reminder_service, workload_service

    def slow_service(db, **kwargs):
        time.sleep(0.3)
        return 0

    monkeypatch.setattr(reminder_service, "check_event_reminders", slow_service)
    monkeypatch.setattr(workload_service, "check_counsellor_overload", slow_service)
    runner = _runner(JOB_HANDLERS)
    finished = asyncio.Event()
    gaps = []

    async def heartbeat():
        last = time.monotonic()
        while not finished.is_set():
            await asyncio.sleep(0.01)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    beat = asyncio.create_task(heartbeat())
    started = time.monotonic()
    results = await asyncio.gather(
        runner.run_task(JobName.EVENT_REMINDERS.value),
        runner.run_task(JobName.COUNSELLOR_OVERLOAD.value),
    )
    elapsed = time.monotonic() - started
    finished.set()
    await beat

    assert results == [True, True]
    assert runner.tasks[JobName.EVENT_REMINDERS.value].last_result == 0
    assert runner.tasks[JobName.COUNSELLOR_OVERLOAD.value].last_result == 0
    # Two 0.3s jobs overlap instead of running back to back
    assert elapsed < 0.55
    assert max(gaps) < 0.2


async def test_handler_failure_is_contained():
    async def broken(db, job):
        raise RuntimeError("boom")

    runner = _runner({"broken": broken})

    assert await runner.run_task("broken") is True
    assert runner.tasks["broken"].last_result is None
    assert not runner.is_running("broken")


async def test_payload_and_session_reach_handler():
    seen = {}

    async def handler(db, job):
        seen["db"] = db
        seen["payload"] = job.payload
        return 1

    runner = _runner({"job": handler})
    sentinel = object()

    await runner.run_task("job", payload={"force": True}, db=sentinel)

    assert seen == {"db": sentinel, "payload": {"force": True}}


async def test_tick_starts_due_tasks():
    results = []

    async def handler(db, job):
        results.append(job.scheduled_for)
        return len(results)

    runner = _runner({"quarter": handler}, schedule={"quarter": "*/15 * * * *"})
    runner.prime(datetime(2026, 3, 10, 9, 0, tzinfo=UTC))

    assert runner.tick(datetime(2026, 3, 10, 9, 10, tzinfo=UTC)) == []
    assert runner.tick(datetime(2026, 3, 10, 9, 15, tzinfo=UTC)) == ["quarter"]
    await runner.wait_idle()

    assert results == [datetime(2026, 3, 10, 9, 15, tzinfo=UTC)]
    assert runner.tasks["quarter"].next_run == datetime(2026, 3, 10, 9, 30, tzinfo=UTC)


async def test_tick_skips_task_still_running():
    gate = asyncio.Event()

    async def slow(db, job):
        await gate.wait()

    runner = _runner({"slow": slow}, schedule={"slow": "* * * * *"})
    runner.prime(datetime(2026, 3, 10, 9, 0, tzinfo=UTC))

    assert runner.tick(datetime(2026, 3, 10, 9, 1, tzinfo=UTC)) == ["slow"]
    await asyncio.sleep(0)
    assert runner.tick(datetime(2026, 3, 10, 9, 2, tzinfo=UTC)) == []

    gate.set()
    await runner.wait_idle()


async def test_prime_ignores_unscheduled_tasks():
    async def handler(db, job):
        return None

    runner = _runner({"manual": handler})
    await runner.run_task("manual")

    runner.prime(datetime(2026, 3, 10, tzinfo=UTC))

    assert runner.tasks["manual"].cron == ""
    assert runner.tasks["manual"].next_run is None


async def test_run_forever_stops():
    runner = _runner({})
    stop = asyncio.Event()
    loop_task = asyncio.create_task(runner.run_forever(poll_seconds=1, stop=stop))
    await asyncio.sleep(0)

    stop.set()
    await asyncio.wait_for(loop_task, timeout=2)


async def test_real_handler_runs_on_own_session(db, session_factory):
    runner = PeriodicTaskRunner(session_factory, schedule={})

    assert await runner.run_task(JobName.WEEKLY_REPORT.value, payload={"force": True}) is True

    assert runner.tasks[JobName.WEEKLY_REPORT.value].last_result is True
    assert db.query(Notification).filter(Notification.type == NotificationType.WEEKLY_REPORT.value).count() == 1
