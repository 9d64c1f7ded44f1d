"""FastAPI application entry point."""
import asyncio
import contextlib
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from staffing.core.config import settings
from staffing.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from staffing.core.migrations import ensure_migrations
from staffing.core.rate_limit import limiter
from staffing.jobs.scheduler import PeriodicTaskRunner, load_schedule
from staffing.routers import admin, availability, duplicates, notifications, submissions
from staffing.services import settings_service

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Event Staffing API",
    description="Counsellor availability, staffing decisions and scheduling intelligence",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# One runner per process; manual triggers share its per-job run flags
app.state.scheduler = PeriodicTaskRunner(SessionLocal, schedule={})
_scheduler_task: asyncio.Task | None = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# ============================================================================
# Routers
# ============================================================================

app.include_router(availability.router, prefix="/availability", tags=["availability"])
app.include_router(submissions.router, prefix="/submissions", tags=["submissions"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(duplicates.router, prefix="/duplicates", tags=["duplicates"])


# ============================================================================
# Startup / Shutdown
# ============================================================================


@app.on_event("startup")
async def _startup() -> None:
    """Apply migrations, seed settings, then start the in-process scheduler."""
    ensure_migrations(engine, settings.DB_AUTO_MIGRATE)
    with SessionLocal() as db:
        settings_service.ensure_default_settings(db)
        schedule = load_schedule(db)

    if not settings.SCHEDULER_ENABLED:
        logger.info("In-process scheduler disabled")
        return

    runner: PeriodicTaskRunner = app.state.scheduler
    for name, expression in schedule.items():
        runner.add_task(name, expression)

    global _scheduler_task
    _scheduler_task = asyncio.create_task(_run_scheduler(runner))


async def _run_scheduler(runner: PeriodicTaskRunner) -> None:
    if settings.SCHEDULER_INITIAL_CHECKS:
        await runner.run_initial_checks()
    await runner.run_forever(poll_seconds=settings.SCHEDULER_POLL_SECONDS)


@app.on_event("shutdown")
async def _shutdown() -> None:
    if _scheduler_task:
        _scheduler_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await _scheduler_task


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
