"""API rate limits (slowapi), keyed by the caller's address."""

import os

from fastapi import Request
from slowapi import Limiter

from staffing.core.config import settings
from staffing.core.deps import get_client_ip

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)


def client_key(request: Request) -> str:
    """Forwarded client address when behind the portal proxy, else the peer."""
    return get_client_ip(request) or "anonymous"


# One process serves the API and the scheduler, so counters stay in memory
limiter = Limiter(
    key_func=client_key,
    storage_uri="memory://",
    default_limits=DEFAULT_LIMITS,
    enabled=not IS_TESTING,
)
