"""Structured logging helpers."""

from typing import Any


def build_log_context(
    *,
    username: str | None = None,
    role: str | None = None,
    job_name: str | None = None,
    submission_id: int | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """
    Fields for `logger.x(..., extra=...)`.

    Unset fields are left out so formatters never print "None".
    """
    fields = {
        "username": username,
        "role": role,
        "job_name": job_name,
        "submission_id": submission_id,
        "request_id": request_id,
        "route": route,
        "method": method,
    }
    return {key: value for key, value in fields.items() if value is not None and value != ""}
