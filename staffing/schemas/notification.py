"""Pydantic schemas for notifications."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class NotificationRead(BaseModel):
    id: int
    type: str
    priority: str
    title: str
    message: str
    metadata: dict | None = Field(None, validation_alias="metadata_json")
    target_role: str
    target_user: str | None
    status: str
    related_submission_id: int | None
    expires_at: datetime | None
    created_at: datetime
    read_at: datetime | None

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]


class UnreadCountResponse(BaseModel):
    count: int
    latest_notification: NotificationRead | None = None


class SettingsUpdate(BaseModel):
    settings: dict[str, Any]


class MergeRequest(BaseModel):
    keep_submission_id: int


class TriggerResponse(BaseModel):
    ok: bool = True
    message: str
    result: Any = None
