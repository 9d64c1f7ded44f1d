"""Job handler registry."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Mapping

from staffing.db.enums import JobName
from staffing.jobs.handlers import anomalies, cleanup, reminders, reports, workload
from staffing.utils.clock import utcnow


@dataclass
class JobRun:
    """One invocation of a periodic job."""

    name: str
    scheduled_for: datetime = field(default_factory=utcnow)
    payload: dict[str, Any] = field(default_factory=dict)
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def today(self) -> date:
        return self.scheduled_for.date()


JobHandler = Callable[[object, JobRun], Awaitable[Any]]

JOB_HANDLERS: Mapping[str, JobHandler] = {
    JobName.EVENT_REMINDERS.value: reminders.process_event_reminders,
    JobName.ANOMALY_DETECTION.value: anomalies.process_anomaly_detection,
    JobName.COUNSELLOR_OVERLOAD.value: workload.process_counsellor_overload,
    JobName.NOTIFICATION_CLEANUP.value: cleanup.process_notification_cleanup,
    JobName.WEEKLY_REPORT.value: reports.process_weekly_report,
}


def resolve_job_handler(job_name: str) -> JobHandler:
    handler = JOB_HANDLERS.get(job_name)
    if not handler:
        raise ValueError(f"Unknown job name: {job_name}")
    return handler
