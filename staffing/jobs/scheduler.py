"""
Periodic task runner.

Tasks are keyed by job name and fire on cron triggers evaluated with croniter.
A task never overlaps itself: while a run is in flight, further triggers for
the same name are skipped. Different tasks may run at the same time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping
from zoneinfo import ZoneInfo

from croniter import croniter
from sqlalchemy.orm import Session

from staffing.core.config import settings
from staffing.core.structured_logging import build_log_context
from staffing.db.enums import JobName
from staffing.jobs.registry import JOB_HANDLERS, JobHandler, JobRun
from staffing.services import settings_service
from staffing.utils.clock import utcnow

logger = logging.getLogger(__name__)

# Jobs run once when the scheduler starts (if SCHEDULER_INITIAL_CHECKS)
INITIAL_CHECKS = (JobName.EVENT_REMINDERS.value, JobName.COUNSELLOR_OVERLOAD.value)


def default_schedule(weekly_report_day: int = 1) -> dict[str, str]:
    """Cron expressions per job name; weekly_report_day uses 0=Sun, 1=Mon."""
    return {
        JobName.EVENT_REMINDERS.value: "0 6 * * *",
        JobName.ANOMALY_DETECTION.value: "0 */6 * * *",
        JobName.COUNSELLOR_OVERLOAD.value: "*/15 * * * *",
        JobName.NOTIFICATION_CLEANUP.value: "0 * * * *",
        JobName.WEEKLY_REPORT.value: f"0 7 * * {weekly_report_day % 7}",
    }


def load_schedule(db: Session) -> dict[str, str]:
    """Build the schedule, reading the weekly report day from notification settings."""
    return default_schedule(settings_service.get_int(db, settings_service.WEEKLY_REPORT_DAY))


def validate_cron(expression: str) -> bool:
    try:
        croniter(expression)
        return True
    except (ValueError, KeyError):
        return False


def next_run_after(expression: str, base_time: datetime, tz_name: str = "UTC") -> datetime:
    """Next fire time strictly after base_time, evaluated in tz_name and returned in UTC."""
    tz = ZoneInfo(tz_name)
    cron = croniter(expression, base_time.astimezone(tz))
    return cron.get_next(datetime).astimezone(ZoneInfo("UTC"))


@dataclass
class PeriodicTask:
    name: str
    cron: str
    next_run: datetime | None = None
    running: bool = False
    last_started: datetime | None = None
    last_result: Any = None


class PeriodicTaskRunner:
    """
    Runs registered job handlers on cron triggers.

    Each run gets its own database session from session_factory unless the
    caller passes one.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        schedule: Mapping[str, str],
        handlers: Mapping[str, JobHandler] | None = None,
        tz_name: str | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.handlers = handlers if handlers is not None else JOB_HANDLERS
        self.tz_name = tz_name or settings.SCHEDULER_TIMEZONE
        self.tasks: dict[str, PeriodicTask] = {}
        self._inflight: set[asyncio.Task] = set()
        for name, expression in schedule.items():
            self.add_task(name, expression)

    def add_task(self, name: str, expression: str) -> PeriodicTask:
        if name not in self.handlers:
            raise ValueError(f"Unknown job name: {name}")
        if not validate_cron(expression):
            raise ValueError(f"Invalid cron expression for {name}: {expression}")
        task = self.tasks.setdefault(name, PeriodicTask(name=name, cron=expression))
        task.cron = expression
        return task

    def is_running(self, name: str) -> bool:
        task = self.tasks.get(name)
        return bool(task and task.running)

    def prime(self, now: datetime | None = None) -> None:
        """Compute the first fire time of every task."""
        now = now or utcnow()
        for task in self.tasks.values():
            if not task.cron:
                continue
            task.next_run = next_run_after(task.cron, now, self.tz_name)

    def due_tasks(self, now: datetime) -> list[PeriodicTask]:
        return [task for task in self.tasks.values() if task.next_run is not None and task.next_run <= now]

    async def run_task(
        self,
        name: str,
        payload: dict | None = None,
        now: datetime | None = None,
        db: Session | None = None,
    ) -> bool:
        """
        Run one job by name.

        Args:
            db: Run on this session instead of opening one (manual triggers)

        Returns False when a run of the same job is already in flight.
        Handler errors are logged and do not propagate; the result is kept
        on tasks[name].last_result.
        """
        handler = self.handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown job name: {name}")
        # Manual runs of unscheduled jobs still share the per-name flag
        task = self.tasks.setdefault(name, PeriodicTask(name=name, cron=""))
        log_extra = build_log_context(job_name=name)

        if task.running:
            logger.info("Job %s still running, skipping trigger", name, extra=log_extra)
            return False

        task.running = True
        task.last_started = now or utcnow()
        task.last_result = None
        job = JobRun(name=name, scheduled_for=task.last_started, payload=payload or {})
        try:
            if db is not None:
                task.last_result = await handler(db, job)
            else:
                with self.session_factory() as own_db:
                    task.last_result = await handler(own_db, job)
            logger.info("Job %s completed (run %s)", name, job.run_id, extra=log_extra)
        except Exception:
            logger.exception("Job %s failed (run %s)", name, job.run_id, extra=log_extra)
        finally:
            task.running = False
        return True

    def tick(self, now: datetime | None = None) -> list[str]:
        """
        Start every due task in the background and advance its next fire time.

        Returns the names started. Must be called from a running event loop.
        """
        now = now or utcnow()
        started = []
        for task in self.due_tasks(now):
            task.next_run = next_run_after(task.cron, now, self.tz_name)
            if task.running:
                logger.info(
                    "Job %s still running, skipping trigger",
                    task.name,
                    extra=build_log_context(job_name=task.name),
                )
                continue
            background = asyncio.create_task(self.run_task(task.name, now=now))
            self._inflight.add(background)
            background.add_done_callback(self._inflight.discard)
            started.append(task.name)
        return started

    async def run_initial_checks(self) -> None:
        for name in INITIAL_CHECKS:
            if name in self.handlers:
                await self.run_task(name)

    async def wait_idle(self) -> None:
        """Wait for background runs started by tick()."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def run_forever(self, poll_seconds: int | None = None, stop: asyncio.Event | None = None) -> None:
        poll_seconds = poll_seconds or settings.SCHEDULER_POLL_SECONDS
        stop = stop or asyncio.Event()
        self.prime()
        logger.info(
            "Scheduler starting (poll interval: %ss, jobs: %s)",
            poll_seconds,
            ", ".join(sorted(self.tasks)),
        )
        while not stop.is_set():
            self.tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_seconds)
            except asyncio.TimeoutError:
                pass
        await self.wait_idle()
        logger.info("Scheduler stopped")


def build_runner(session_factory: Callable[[], Session]) -> PeriodicTaskRunner:
    """Runner for the default job set, reading schedule settings once at start."""
    with session_factory() as db:
        schedule = load_schedule(db)
    return PeriodicTaskRunner(session_factory, schedule)
