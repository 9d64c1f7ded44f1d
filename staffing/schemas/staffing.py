"""Pydantic schemas for availability and staffing decisions."""

from datetime import date

from pydantic import BaseModel, Field

from staffing.db.enums import AvailabilityStatus


class ConflictRead(BaseModel):
    id: int
    start_date: date
    end_date: date
    city: str
    country: str

    model_config = {"from_attributes": True}


class CounsellorAvailabilityRead(BaseModel):
    counsellor_id: int
    username: str
    full_name: str
    status: AvailabilityStatus
    available: bool
    available_ranges: list[str]
    conflicts: list[ConflictRead]


class FinalizeRequest(BaseModel):
    counsellor_ids: list[int] = Field(default_factory=list)


class MetadataUpdate(BaseModel):
    """Partial update; only fields sent by the client are applied."""
    sent_by_counsellor_id: int | None = None
    payment_status: str | None = None
    event_status: str | None = None
    remarks: str | None = None


class RescheduleRequest(BaseModel):
    start_date: str
    end_date: str
