"""Availability API - who is free for a date window."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from staffing.core.deps import get_db, require_roles
from staffing.db.enums import AvailabilityStatus, Role
from staffing.schemas.auth import UserSession
from staffing.schemas.staffing import ConflictRead, CounsellorAvailabilityRead
from staffing.services import availability_service
from staffing.utils.date_ranges import InvalidDateRangeError, parse_date

router = APIRouter()


@router.get("", response_model=list[CounsellorAvailabilityRead])
def get_availability(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    exclude_submission_id: int | None = Query(None),
    session: UserSession = Depends(require_roles([Role.ADMIN, Role.COUNSELLOR])),
    db: Session = Depends(get_db),
):
    """
    Classify every active counsellor for the inclusive window.

    Only confirmed assignments count. Pass exclude_submission_id when
    re-finalizing a submission so its own staff are not reported as busy.
    """
    try:
        start: date = parse_date(start_date)
        end: date = parse_date(end_date)
        rows = availability_service.get_availability(db, start, end, exclude_submission_id)
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return [
        CounsellorAvailabilityRead(
            counsellor_id=row.counsellor_id,
            username=row.username,
            full_name=row.full_name,
            status=row.status,
            available=row.status == AvailabilityStatus.AVAILABLE,
            available_ranges=row.available_ranges,
            conflicts=[ConflictRead.model_validate(c) for c in row.conflicts],
        )
        for row in rows
    ]
