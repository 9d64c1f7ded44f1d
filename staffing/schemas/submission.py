"""Pydantic schemas for submissions."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class SubmissionCreate(BaseModel):
    """Request to create a submission (counsellor)."""
    start_date: date
    end_date: date
    organizer_id: int
    event_name_id: int
    event_type_id: int
    city: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=100)
    proposed_staffing: str | None = None
    remarks: str | None = None
    suggested_ids: list[int] = Field(default_factory=list)

    @field_validator("city", "country")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class SubmissionUpdate(SubmissionCreate):
    """Counsellor edit; same shape as create."""


class BatchCreateRequest(BaseModel):
    """Items are validated one by one so a bad row does not sink the batch."""
    events: list[dict] = Field(..., min_length=1)


class BatchItemResult(BaseModel):
    index: int
    id: int


class BatchItemError(BaseModel):
    index: int
    error: str


class BatchCreateResponse(BaseModel):
    ok: bool
    submitted: int
    failed: int
    results: list[BatchItemResult]
    errors: list[BatchItemError]


class RemarksUpdate(BaseModel):
    remarks: str | None = None


class StaffMember(BaseModel):
    id: int
    username: str
    full_name: str

    model_config = {"from_attributes": True}


class SubmissionRead(BaseModel):
    """Full submission response with staffing."""
    id: int
    start_date: date
    end_date: date
    organizer: str
    organizer_id: int | None
    event_name_id: int | None
    event_type_id: int | None
    city: str
    country: str
    proposed_staffing: str | None
    remarks: str | None
    status: str
    event_status: str
    payment_status: str
    submitted_by: str
    sent_by_counsellor_id: int | None
    confirmed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    assigned: list[StaffMember] = Field(default_factory=list, validation_alias="assigned_counsellors")
    suggested: list[StaffMember] = Field(default_factory=list, validation_alias="suggested_counsellors")

    model_config = {"from_attributes": True}


class SubmissionFilters(BaseModel):
    """Admin listing filters; text filters are case-insensitive substring matches."""
    status: str | None = None
    organizer: str | None = None
    city: str | None = None
    country: str | None = None
    month: int | None = Field(None, ge=1, le=12)
    counsellor_id: int | None = None
    q: str | None = None
