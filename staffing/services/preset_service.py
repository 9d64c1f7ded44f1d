"""Admin-managed presets (organizers, event names, event types)."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffing.db.models import EventName, EventType, Organizer
from staffing.schemas.counsellor import PresetUpdate

PRESET_MODELS = {
    "organizers": Organizer,
    "event-names": EventName,
    "event-types": EventType,
}

PRESET_LABELS = {
    "organizers": "Organizer",
    "event-names": "Event name",
    "event-types": "Event type",
}


class PresetError(Exception):
    pass


class PresetNotFoundError(PresetError):
    pass


class PresetConflictError(PresetError):
    pass


def _model(kind: str):
    try:
        return PRESET_MODELS[kind]
    except KeyError:
        raise PresetNotFoundError(f"Unknown preset kind '{kind}'") from None


def list_presets(db: Session, kind: str, active_only: bool = False) -> list:
    model = _model(kind)
    query = db.query(model)
    if active_only:
        return query.filter(model.is_active.is_(True)).order_by(model.name).all()
    return query.order_by(model.is_active.desc(), model.name).all()


def create_preset(db: Session, kind: str, name: str):
    model = _model(kind)
    preset = model(name=name.strip())
    db.add(preset)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise PresetConflictError(f"{PRESET_LABELS[kind]} already exists.") from e
    db.refresh(preset)
    return preset


def update_preset(db: Session, kind: str, preset_id: int, data: PresetUpdate):
    model = _model(kind)
    preset = db.get(model, preset_id)
    if not preset:
        raise PresetNotFoundError(f"{PRESET_LABELS[kind]} not found.")
    if data.name is None and data.is_active is None:
        raise PresetError("No updates provided.")
    if data.name is not None and data.name.strip():
        preset.name = data.name.strip()
    if data.is_active is not None:
        preset.is_active = data.is_active
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise PresetConflictError(f"{PRESET_LABELS[kind]} already exists.") from e
    db.refresh(preset)
    return preset
