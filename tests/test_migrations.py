from sqlalchemy import inspect
from sqlalchemy.orm import sessionmaker

from staffing.core.migrations import ensure_migrations, get_migration_status
from staffing.db.base import Base
from staffing.db.session import build_engine
from staffing.services import settings_service


def test_fresh_database_reports_behind_without_auto_migrate():
    engine = build_engine("sqlite://")

    status = ensure_migrations(engine, auto_migrate=False)

    assert status.is_up_to_date is False
    assert status.current_heads == ()
    engine.dispose()


def test_upgrade_builds_every_table():
    engine = build_engine("sqlite://")

    status = ensure_migrations(engine, auto_migrate=True)

    assert status.is_up_to_date
    assert get_migration_status(engine).current_heads == status.head_revisions
    tables = set(inspect(engine).get_table_names())
    assert set(Base.metadata.tables) <= tables

    # Defaults are seeded by the baseline revision
    with sessionmaker(bind=engine)() as db:
        assert settings_service.ensure_default_settings(db) == 0
        assert settings_service.get_all_settings(db).keys() == settings_service.DEFAULT_SETTINGS.keys()
    engine.dispose()
