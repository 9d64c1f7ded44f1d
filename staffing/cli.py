"""CLI tools for staffing administration."""

import asyncio
import json

import click

from staffing.core.config import settings
from staffing.core.migrations import ensure_migrations, get_migration_status
from staffing.db.session import SessionLocal, engine
from staffing.jobs.registry import JOB_HANDLERS
from staffing.jobs.scheduler import PeriodicTaskRunner, load_schedule
from staffing.schemas.counsellor import CounsellorCreate
from staffing.services import counsellor_service, settings_service
from staffing.services.counsellor_service import CounsellorConflictError


@click.group()
def cli():
    """Staffing CLI tools."""
    pass


@cli.command()
@click.option("--check", is_flag=True, help="Only report whether the database is at head")
def migrate(check: bool):
    """
    Upgrade the database to the latest migration and seed default settings.

    Example:
        python -m staffing.cli migrate
    """
    if check:
        status = get_migration_status(engine)
        state = "up to date" if status.is_up_to_date else "behind"
        click.echo(f"Database is {state} (current={','.join(status.current_heads) or '-'}, "
                   f"head={','.join(status.head_revisions)})")
        return

    status = ensure_migrations(engine, auto_migrate=True)
    with SessionLocal() as db:
        inserted = settings_service.ensure_default_settings(db)
    click.echo(f"✓ Database at {','.join(status.current_heads)}")
    if inserted:
        click.echo(f"✓ Seeded {inserted} default setting(s)")


@cli.command("list-jobs")
def list_jobs():
    """Show every periodic job with its cron trigger."""
    with SessionLocal() as db:
        schedule = load_schedule(db)
    for name in sorted(JOB_HANDLERS):
        click.echo(f"{name:<24} {schedule.get(name, '-')}")
    click.echo(f"(timezone: {settings.SCHEDULER_TIMEZONE})")


@cli.command("run-job")
@click.argument("name", type=click.Choice(sorted(JOB_HANDLERS)))
@click.option("--force", is_flag=True, help="Bypass the enabled switch (weekly_report only)")
def run_job(name: str, force: bool):
    """
    Run one periodic job immediately.

    Example:
        python -m staffing.cli run-job weekly_report --force
    """
    runner = PeriodicTaskRunner(SessionLocal, schedule={})
    payload = {"force": True} if force else {}
    asyncio.run(runner.run_task(name, payload=payload))
    result = runner.tasks[name].last_result
    click.echo(f"✓ {name}: {json.dumps(result, default=str)}")


@cli.command("create-counsellor")
@click.option("--username", required=True, help="Login name (unique)")
@click.option("--full-name", required=True, help="Display name")
@click.option("--inactive", is_flag=True, help="Create the account deactivated")
def create_counsellor(username: str, full_name: str, inactive: bool):
    """
    Register a counsellor so they appear in availability and can be staffed.

    Example:
        python -m staffing.cli create-counsellor --username jdoe --full-name "Jane Doe"
    """
    db = SessionLocal()
    try:
        counsellor = counsellor_service.create_counsellor(
            db,
            CounsellorCreate(username=username, full_name=full_name, is_active=not inactive),
        )
        click.echo(f"✓ Created counsellor: {counsellor.full_name}")
        click.echo(f"  ID: {counsellor.id}")
        click.echo(f"  Username: {counsellor.username}")
    except CounsellorConflictError as e:
        click.echo(f"❌ {e}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, help="Bind port")
def serve(host: str, port: int):
    """Run the API (and the in-process scheduler when SCHEDULER_ENABLED)."""
    import uvicorn

    uvicorn.run("staffing.main:app", host=host, port=port)


if __name__ == "__main__":
    cli()
