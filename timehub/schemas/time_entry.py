from typing import Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator, ValidationInfo

from timehub.models.time_entry import EntrySource
from timehub.utils.timeutils import ensure_utc, get_zone, parse_date, parse_hhmm


class CandidateEntry(BaseModel):
    """Normalized entry produced by a provider transform or an import adapter."""
    source: EntrySource = Field(..., description="Origin of the entry")
    external_id: str = Field(..., min_length=1, description="Upstream or synthesized identifier, unique per source")
    date: datetime = Field(..., description="Start of the work period (aware, UTC)")
    duration: float = Field(..., ge=0, description="Duration in hours")
    project: Optional[str] = Field(None, description="Project label")
    description: Optional[str] = Field(None, description="Free-text description")

    @field_validator('date')
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return ensure_utc(v)


def _validate_timezone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    get_zone(v)
    return v


class ManualEntryCreate(BaseModel):
    """Payload of a manually entered time entry."""
    date: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    start_time: str = Field(..., description="Wall-clock start (HH:MM)")
    end_time: str = Field(..., description="Wall-clock end (HH:MM), same day, after start_time")
    project: Optional[str] = None
    description: Optional[str] = None
    timezone: Optional[str] = Field(None, description="IANA timezone of the wall-clock times, defaults to UTC")

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: str) -> str:
        parse_date(v)
        return v

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @field_validator('end_time')
    @classmethod
    def validate_end_time(cls, v: str, info: ValidationInfo) -> str:
        end_minutes = parse_hhmm(v)
        start = info.data.get('start_time')
        if start is not None and end_minutes <= parse_hhmm(start):
            raise ValueError('End time must be after start time')
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_timezone(v)


class TimeEntryUpdate(BaseModel):
    """Full replacement of an entry's editable fields."""
    date: datetime
    duration: float = Field(..., ge=0)
    project: Optional[str] = None
    description: Optional[str] = None
    source: EntrySource
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            parse_hhmm(v)
        return v

    @field_validator('end_time')
    @classmethod
    def validate_end_time(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            return v
        end_minutes = parse_hhmm(v)
        start = info.data.get('start_time')
        if start and end_minutes <= parse_hhmm(start):
            raise ValueError('End time must be after start time')
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_timezone(v)

    @model_validator(mode="after")
    def times_come_in_pairs(self) -> "TimeEntryUpdate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        return self


class TimeEntryInDB(BaseModel):
    id: str
    source: str
    external_id: Optional[str] = None
    date: datetime
    duration: float
    project: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator('date', 'created_at')
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)
