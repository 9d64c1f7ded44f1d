"""
Submissions Router - counsellor-facing event submissions.

Counsellors create and edit their own submissions; admins may delete any.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from staffing.core.deps import get_client_ip, get_db, require_roles
from staffing.core.rate_limit import limiter
from staffing.db.enums import Role
from staffing.schemas.auth import UserSession
from staffing.schemas.counsellor import CounsellorRead, CountrySuggestionRead, PresetRead, PresetsResponse
from staffing.schemas.submission import (
    BatchCreateRequest,
    BatchCreateResponse,
    RemarksUpdate,
    SubmissionCreate,
    SubmissionRead,
    SubmissionUpdate,
)
from staffing.services import counsellor_service, preset_service, submission_service
from staffing.services.staffing_service import (
    StaffingValidationError,
    SubmissionForbiddenError,
    SubmissionNotFoundError,
)

router = APIRouter()

counsellor_only = require_roles([Role.COUNSELLOR])
any_role = require_roles([Role.ADMIN, Role.COUNSELLOR])


# =============================================================================
# Form data
# =============================================================================


@router.get("/presets", response_model=PresetsResponse)
def get_presets(
    session: UserSession = Depends(any_role),
    db: Session = Depends(get_db),
):
    """Active organizers, event names and event types for the submission form."""
    return PresetsResponse(
        organizers=[PresetRead.model_validate(p) for p in preset_service.list_presets(db, "organizers", True)],
        event_names=[PresetRead.model_validate(p) for p in preset_service.list_presets(db, "event-names", True)],
        event_types=[PresetRead.model_validate(p) for p in preset_service.list_presets(db, "event-types", True)],
    )


@router.get("/counsellors", response_model=list[CounsellorRead])
def list_active_counsellors(
    session: UserSession = Depends(any_role),
    db: Session = Depends(get_db),
):
    return counsellor_service.list_counsellors(db, active_only=True)


@router.get("/country-suggestions", response_model=list[CountrySuggestionRead])
def get_country_suggestions(
    country: str = Query(..., min_length=1),
    session: UserSession = Depends(any_role),
    db: Session = Depends(get_db),
):
    """Counsellors the admins suggest for a country (advisory)."""
    return counsellor_service.list_country_suggestions(db, country.strip())


# =============================================================================
# Own submissions
# =============================================================================


@router.get("/mine", response_model=list[SubmissionRead])
def list_my_submissions(
    since: datetime | None = Query(None, description="Only rows updated after this instant"),
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    rows = submission_service.list_my_submissions(db, session.username, since)
    return [submission_service.to_read(s) for s in rows]


@router.get("/assignments", response_model=list[SubmissionRead])
def list_my_assignments(
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    """Confirmed events the caller staffs on behalf of other submitters."""
    try:
        rows = submission_service.list_my_assignments(db, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [submission_service.to_read(s) for s in rows]


@router.post("", response_model=SubmissionRead, status_code=status.HTTP_201_CREATED)
def create_submission(
    data: SubmissionCreate,
    request: Request,
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    try:
        submission = submission_service.create_submission(
            db, data, session.username, ip_address=get_client_ip(request)
        )
    except StaffingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return submission_service.to_read(submission)


@router.post("/batch", response_model=BatchCreateResponse)
@limiter.limit("10/minute")
def batch_create(
    request: Request,
    data: BatchCreateRequest,
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    """Create several submissions; each item succeeds or fails on its own."""
    results, errors = submission_service.batch_create(
        db, data.events, session.username, ip_address=get_client_ip(request)
    )
    return BatchCreateResponse(
        ok=bool(results),
        submitted=len(results),
        failed=len(errors),
        results=results,
        errors=errors,
    )


@router.put("/{submission_id}", response_model=SubmissionRead)
def update_submission(
    submission_id: int,
    data: SubmissionUpdate,
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    """Edit an own submission; confirmed ones only before their start date."""
    try:
        submission = submission_service.update_submission(db, submission_id, data, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubmissionForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StaffingValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return submission_service.to_read(submission)


@router.patch("/{submission_id}/remarks", response_model=SubmissionRead)
def update_remarks(
    submission_id: int,
    data: RemarksUpdate,
    session: UserSession = Depends(counsellor_only),
    db: Session = Depends(get_db),
):
    try:
        submission = submission_service.update_remarks(db, submission_id, data.remarks, session.username)
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubmissionForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return submission_service.to_read(submission)


@router.delete("/{submission_id}")
def delete_submission(
    submission_id: int,
    request: Request,
    session: UserSession = Depends(any_role),
    db: Session = Depends(get_db),
):
    """Admins delete any submission, counsellors only their own."""
    try:
        submission_service.delete_submission(db, submission_id, session, ip_address=get_client_ip(request))
    except SubmissionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SubmissionForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return {"ok": True}
