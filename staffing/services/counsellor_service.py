"""Counsellor accounts and country suggestions."""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffing.db.models import Counsellor, CountrySuggestion
from staffing.schemas.counsellor import CounsellorCreate, CounsellorUpdate


class CounsellorError(Exception):
    """Base exception for counsellor management."""


class CounsellorNotFoundError(CounsellorError):
    pass


class CounsellorConflictError(CounsellorError):
    """Unique constraint hit (username or country suggestion)."""


def list_counsellors(db: Session, active_only: bool = False) -> list[Counsellor]:
    query = db.query(Counsellor)
    if active_only:
        query = query.filter(Counsellor.is_active.is_(True))
    return query.order_by(Counsellor.is_active.desc(), func.lower(Counsellor.full_name)).all()


def get_counsellor(db: Session, counsellor_id: int) -> Counsellor:
    counsellor = db.get(Counsellor, counsellor_id)
    if not counsellor:
        raise CounsellorNotFoundError("Counsellor not found.")
    return counsellor


def get_by_username(db: Session, username: str) -> Counsellor | None:
    return db.query(Counsellor).filter(Counsellor.username == username).first()


def create_counsellor(db: Session, data: CounsellorCreate) -> Counsellor:
    counsellor = Counsellor(
        username=data.username.strip(),
        full_name=data.full_name.strip(),
        is_active=data.is_active,
    )
    db.add(counsellor)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise CounsellorConflictError("Username already exists.") from e
    db.refresh(counsellor)
    return counsellor


def update_counsellor(db: Session, counsellor_id: int, data: CounsellorUpdate) -> Counsellor:
    """Deactivation keeps assignment history; it only hides the counsellor from availability."""
    counsellor = get_counsellor(db, counsellor_id)
    if data.full_name is not None and data.full_name.strip():
        counsellor.full_name = data.full_name.strip()
    if data.is_active is not None:
        counsellor.is_active = data.is_active
    db.commit()
    db.refresh(counsellor)
    return counsellor


# =============================================================================
# Country suggestions
# =============================================================================


def list_country_suggestions(db: Session, country: str | None = None) -> list[CountrySuggestion]:
    query = db.query(CountrySuggestion).join(Counsellor, Counsellor.id == CountrySuggestion.counsellor_id)
    if country is not None:
        query = query.filter(CountrySuggestion.country == country)
    return query.order_by(CountrySuggestion.country, Counsellor.full_name).all()


def add_country_suggestion(db: Session, country: str, counsellor_id: int) -> CountrySuggestion:
    get_counsellor(db, counsellor_id)
    suggestion = CountrySuggestion(country=country.strip(), counsellor_id=counsellor_id)
    db.add(suggestion)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise CounsellorConflictError("This counsellor is already suggested for this country.") from e
    db.refresh(suggestion)
    return suggestion


def remove_country_suggestion(db: Session, suggestion_id: int) -> None:
    suggestion = db.get(CountrySuggestion, suggestion_id)
    if not suggestion:
        raise CounsellorNotFoundError("Suggestion not found.")
    db.delete(suggestion)
    db.commit()
