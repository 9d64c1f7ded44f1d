"""Alembic environment for the staffing schema."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import staffing.db.models  # noqa: F401  (registers every table on Base.metadata)
from staffing.core.config import settings
from staffing.db.base import Base

config = context.config

# staffing.core.migrations pins the URL; plain `alembic upgrade` falls back to settings
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        target_metadata=target_metadata,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


def run_online() -> None:
    shared = config.attributes.get("connection")
    if shared is not None:
        _configure(connection=shared)
        return

    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        connection.commit()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
