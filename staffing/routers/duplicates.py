"""Duplicate Router - resolve flagged duplicate submissions (admin)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from staffing.core.deps import get_db, require_roles
from staffing.db.enums import Role
from staffing.schemas.auth import UserSession
from staffing.schemas.notification import MergeRequest
from staffing.services import duplicate_service
from staffing.services.duplicate_service import DuplicateNotFoundError, DuplicateValidationError

router = APIRouter()

admin_only = require_roles([Role.ADMIN])


@router.post("/{notification_id}/dismiss")
def dismiss_duplicate(
    notification_id: int,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Record the pair as not-a-duplicate so it is never flagged again."""
    try:
        duplicate_service.dismiss_duplicate(db, notification_id, session.username)
    except DuplicateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"ok": True}


@router.post("/{notification_id}/merge")
def merge_duplicate(
    notification_id: int,
    data: MergeRequest,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Keep one submission of the pair and delete the other."""
    try:
        deleted_id = duplicate_service.merge_duplicate(
            db, notification_id, data.keep_submission_id, session.username
        )
    except DuplicateNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "kept": data.keep_submission_id, "deleted": deleted_id}
