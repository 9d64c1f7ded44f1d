"""Pydantic schemas for counsellors, presets and country suggestions."""

from datetime import datetime

from pydantic import BaseModel, Field


class CounsellorCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=255)
    is_active: bool = True


class CounsellorUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None


class CounsellorRead(BaseModel):
    id: int
    username: str
    full_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PresetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class PresetUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None


class PresetRead(BaseModel):
    id: int
    name: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class PresetsResponse(BaseModel):
    organizers: list[PresetRead]
    event_names: list[PresetRead]
    event_types: list[PresetRead]


class CountrySuggestionCreate(BaseModel):
    country: str = Field(..., min_length=1, max_length=100)
    counsellor_id: int


class CountrySuggestionRead(BaseModel):
    id: int
    country: str
    counsellor_id: int
    full_name: str
    username: str

    model_config = {"from_attributes": True}
