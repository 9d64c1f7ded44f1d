"""
Test configuration and fixtures.

Provides:
- A fresh in-memory SQLite database per test (schema from the models)
- Factories for counsellors, presets and submissions
- JWT bearer headers for admin and counsellor principals
- HTTPX AsyncClient with get_db overridden
"""
import os
from dataclasses import dataclass
from datetime import date
from typing import AsyncGenerator, Generator

# Must be set before the app modules read settings
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "False"
os.environ["DB_AUTO_MIGRATE"] = "False"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from staffing.core.deps import get_db
from staffing.core.security import create_session_token
from staffing.db.base import Base
from staffing.db.enums import EventStatus, Role, SubmissionStatus
from staffing.db.models import (
    Counsellor,
    EventName,
    EventType,
    Organizer,
    Submission,
    SubmissionAssignment,
)
from staffing.db.session import build_engine
from staffing.main import app
from staffing.services import settings_service


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory bound to a throwaway in-memory database."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Session with the default notification settings seeded."""
    session = session_factory()
    settings_service.ensure_default_settings(session)
    yield session
    session.close()


# =============================================================================
# Data Fixtures
# =============================================================================


@dataclass
class Presets:
    organizer: Organizer
    event_name: EventName
    event_type: EventType


@pytest.fixture(scope="function")
def presets(db: Session) -> Presets:
    organizer = Organizer(name="Global Education Fairs")
    event_name = EventName(name="Study Abroad Expo")
    event_type = EventType(name="Fair")
    db.add_all([organizer, event_name, event_type])
    db.commit()
    return Presets(organizer=organizer, event_name=event_name, event_type=event_type)


@pytest.fixture(scope="function")
def make_counsellor(db: Session):
    def _make(username: str, full_name: str | None = None, is_active: bool = True) -> Counsellor:
        counsellor = Counsellor(
            username=username,
            full_name=full_name or username.title(),
            is_active=is_active,
        )
        db.add(counsellor)
        db.commit()
        return counsellor

    return _make


@pytest.fixture(scope="function")
def counsellors(make_counsellor) -> list[Counsellor]:
    """alice, bob, carol - active."""
    return [
        make_counsellor("alice", "Alice Martin"),
        make_counsellor("bob", "Bob Chen"),
        make_counsellor("carol", "Carol Diaz"),
    ]


@pytest.fixture(scope="function")
def make_submission(db: Session, presets: Presets):
    """
    Create a submission row directly.

    Passing `assigned` confirms it with those counsellors unless a status
    is given explicitly.
    """
    def _make(
        start: date,
        end: date,
        city: str = "Paris",
        country: str = "France",
        submitted_by: str = "alice",
        assigned: list[Counsellor] | None = None,
        status: str | None = None,
        event_status: str = EventStatus.ONGOING.value,
        organizer_id: int | None = None,
        **extra,
    ) -> Submission:
        if status is None:
            status = SubmissionStatus.CONFIRMED.value if assigned else SubmissionStatus.PENDING.value
        submission = Submission(
            start_date=start,
            end_date=end,
            organizer=f"{presets.organizer.name} | {presets.event_name.name} | {presets.event_type.name}",
            organizer_id=organizer_id if organizer_id is not None else presets.organizer.id,
            event_name_id=presets.event_name.id,
            event_type_id=presets.event_type.id,
            city=city,
            country=country,
            submitted_by=submitted_by,
            status=status,
            event_status=event_status,
            **extra,
        )
        db.add(submission)
        db.flush()
        for counsellor in assigned or []:
            db.add(SubmissionAssignment(submission_id=submission.id, counsellor_id=counsellor.id))
        db.commit()
        db.refresh(submission)
        return submission

    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================


def bearer(username: str, role: Role) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(username, role.value)}"}


@pytest.fixture(scope="function")
def admin_headers() -> dict[str, str]:
    return bearer("admin", Role.ADMIN)


@pytest.fixture(scope="function")
def counsellor_headers() -> dict[str, str]:
    """Token for 'alice' (matches the counsellors fixture)."""
    return bearer("alice", Role.COUNSELLOR)


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient against the app with the test session injected."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
