"""
Versioned schema migrations, applied once before the API or worker starts.

Both entry points call ensure_migrations() with their engine; tests build the
schema with create_all() instead and never touch alembic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class MigrationStatus:
    current_heads: tuple[str, ...]
    head_revisions: tuple[str, ...]

    @property
    def is_up_to_date(self) -> bool:
        return set(self.current_heads) == set(self.head_revisions)


class MigrationError(RuntimeError):
    """Upgrade ran but the database still does not match the script heads."""


def build_alembic_config(engine: Engine) -> Config:
    """Alembic config pinned to this engine's URL and the bundled scripts."""
    ini_path = PROJECT_ROOT / "alembic.ini"
    if not ini_path.is_file():
        raise FileNotFoundError(f"alembic.ini not found at {ini_path}")
    config = Config(str(ini_path))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", engine.url.render_as_string(hide_password=False))
    return config


def get_migration_status(engine: Engine) -> MigrationStatus:
    script = ScriptDirectory.from_config(build_alembic_config(engine))
    with engine.connect() as connection:
        # No alembic_version table yet means no heads
        current = MigrationContext.configure(connection).get_current_heads()
    return MigrationStatus(current_heads=tuple(current), head_revisions=tuple(script.get_heads()))


def ensure_migrations(engine: Engine, auto_migrate: bool) -> MigrationStatus:
    """
    Bring the schema to head when auto_migrate is set.

    With auto_migrate off a stale schema is only logged; callers decide
    whether to keep going.

    Raises:
        MigrationError: upgrade finished without reaching head
    """
    status = get_migration_status(engine)
    if status.is_up_to_date:
        return status
    if not auto_migrate:
        logger.warning(
            "Schema behind head (current=%s head=%s) and DB_AUTO_MIGRATE is off",
            ",".join(status.current_heads) or "-",
            ",".join(status.head_revisions),
        )
        return status

    config = build_alembic_config(engine)
    with engine.begin() as connection:
        # Shared with env.py so in-memory SQLite migrates the same database
        config.attributes["connection"] = connection
        command.upgrade(config, "head")

    status = get_migration_status(engine)
    if not status.is_up_to_date:
        raise MigrationError(f"Schema still behind head after upgrade: {status.current_heads}")
    logger.info("Schema migrated to %s", ",".join(status.current_heads))
    return status
