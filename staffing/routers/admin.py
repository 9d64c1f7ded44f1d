"""
Admin Router - staffing decisions, event metadata and reference data.

Every endpoint requires the admin role.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from staffing.core.deps import get_db, require_roles
from staffing.db.enums import Role
from staffing.schemas.auth import UserSession
from staffing.schemas.counsellor import (
    CounsellorCreate,
    CounsellorRead,
    CounsellorUpdate,
    CountrySuggestionCreate,
    CountrySuggestionRead,
    PresetCreate,
    PresetRead,
    PresetUpdate,
)
from staffing.schemas.staffing import FinalizeRequest, MetadataUpdate, RescheduleRequest
from staffing.schemas.submission import SubmissionFilters, SubmissionRead
from staffing.services import counsellor_service, preset_service, staffing_service, submission_service
from staffing.services.counsellor_service import CounsellorConflictError, CounsellorNotFoundError
from staffing.services.preset_service import PresetConflictError, PresetError, PresetNotFoundError
from staffing.services.staffing_service import StaffingValidationError, SubmissionNotFoundError
from staffing.utils.date_ranges import InvalidDateRangeError, parse_date

router = APIRouter(dependencies=[Depends(require_roles([Role.ADMIN]))])

admin_only = require_roles([Role.ADMIN])


# =============================================================================
# Events and staffing
# =============================================================================


@router.get("/events", response_model=list[SubmissionRead])
def list_events(
    filters: SubmissionFilters = Depends(),
    db: Session = Depends(get_db),
):
    rows = submission_service.list_submissions(db, filters)
    return [submission_service.to_read(s) for s in rows]


@router.post("/events/{submission_id}/finalize", response_model=SubmissionRead)
def finalize_staffing(
    submission_id: int,
    data: FinalizeRequest,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """
    Confirm the submission with exactly these counsellors.

    Previous assignments are replaced. Busy counsellors are allowed.
    """
    try:
        submission = staffing_service.finalize(db, submission_id, data.counsellor_ids, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StaffingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return submission_service.to_read(submission)


@router.patch("/events/{submission_id}/meta", response_model=SubmissionRead)
def update_metadata(
    submission_id: int,
    data: MetadataUpdate,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Update sent-by, payment status, event status or remarks."""
    changes = data.model_dump(include=data.model_fields_set)
    try:
        submission = staffing_service.update_metadata(db, submission_id, changes, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StaffingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return submission_service.to_read(submission)


@router.post("/events/{submission_id}/reschedule", response_model=SubmissionRead)
def reschedule_event(
    submission_id: int,
    data: RescheduleRequest,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Give a postponed or cancelled event new dates and reopen it."""
    try:
        start = parse_date(data.start_date)
        end = parse_date(data.end_date)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        submission = staffing_service.reschedule(db, submission_id, start, end, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StaffingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return submission_service.to_read(submission)


# =============================================================================
# Counsellors
# =============================================================================


@router.get("/counsellors", response_model=list[CounsellorRead])
def list_counsellors(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    return counsellor_service.list_counsellors(db, active_only)


@router.post("/counsellors", response_model=CounsellorRead, status_code=status.HTTP_201_CREATED)
def create_counsellor(
    data: CounsellorCreate,
    db: Session = Depends(get_db),
):
    try:
        return counsellor_service.create_counsellor(db, data)
    except CounsellorConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/counsellors/{counsellor_id}", response_model=CounsellorRead)
def update_counsellor(
    counsellor_id: int,
    data: CounsellorUpdate,
    db: Session = Depends(get_db),
):
    """Rename or (de)activate. Deactivated counsellors keep their history."""
    try:
        return counsellor_service.update_counsellor(db, counsellor_id, data)
    except CounsellorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# =============================================================================
# Country suggestions
# =============================================================================


@router.get("/country-suggestions", response_model=list[CountrySuggestionRead])
def list_country_suggestions(
    country: str | None = Query(None),
    db: Session = Depends(get_db),
):
    return counsellor_service.list_country_suggestions(db, country)


@router.post(
    "/country-suggestions",
    response_model=CountrySuggestionRead,
    status_code=status.HTTP_201_CREATED,
)
def add_country_suggestion(
    data: CountrySuggestionCreate,
    db: Session = Depends(get_db),
):
    try:
        return counsellor_service.add_country_suggestion(db, data.country, data.counsellor_id)
    except CounsellorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CounsellorConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/country-suggestions/{suggestion_id}")
def remove_country_suggestion(
    suggestion_id: int,
    db: Session = Depends(get_db),
):
    try:
        counsellor_service.remove_country_suggestion(db, suggestion_id)
    except CounsellorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


# =============================================================================
# Presets
# =============================================================================


@router.get("/presets/{kind}", response_model=list[PresetRead])
def list_presets(
    kind: str,
    db: Session = Depends(get_db),
):
    """kind is one of organizers, event-names, event-types."""
    try:
        return preset_service.list_presets(db, kind)
    except PresetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/presets/{kind}", response_model=PresetRead, status_code=status.HTTP_201_CREATED)
def create_preset(
    kind: str,
    data: PresetCreate,
    db: Session = Depends(get_db),
):
    try:
        return preset_service.create_preset(db, kind, data.name)
    except PresetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PresetConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/presets/{kind}/{preset_id}", response_model=PresetRead)
def update_preset(
    kind: str,
    preset_id: int,
    data: PresetUpdate,
    db: Session = Depends(get_db),
):
    try:
        return preset_service.update_preset(db, kind, preset_id, data)
    except PresetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PresetError as e:
        raise HTTPException(status_code=400, detail=str(e))
