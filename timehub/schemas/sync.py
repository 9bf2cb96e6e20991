from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from timehub.utils.timeutils import parse_date


class SyncRequest(BaseModel):
    start_date: Optional[str] = None  # YYYY-MM-DD, default window if not provided
    end_date: Optional[str] = None    # YYYY-MM-DD, default window if not provided

    @field_validator("start_date", "end_date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        if v:
            parse_date(v)
        return v


class BaseSyncResult(BaseModel):
    count: int = Field(0, description="Entries upserted")
    cached: bool = Field(False, description="Raw data came from the on-disk cache")
    message: str


class TogglSyncResult(BaseSyncResult):
    provider: Literal["TOGGL"] = "TOGGL"
    skipped: int = Field(0, description="Entries skipped after a storage collision")


class TempoSyncResult(BaseSyncResult):
    provider: Literal["TEMPO"] = "TEMPO"
    issue_keys_resolved: int = Field(0, description="Entries whose issue key was present")
    issue_keys_fallback: int = Field(0, description="Entries labelled by numeric issue id")
    jira_base_url: Optional[str] = None


SyncResult = Annotated[Union[TogglSyncResult, TempoSyncResult], Field(discriminator="provider")]


class ProviderSyncOutcome(BaseModel):
    """Per-provider result of a fan-out sync."""
    provider: str
    success: bool
    result: Optional[SyncResult] = None
    error: Optional[str] = None


class SyncAllResponse(BaseModel):
    success: bool
    total_imported: int = 0
    total_skipped: int = 0
    results: List[ProviderSyncOutcome]


class ProviderStatus(BaseModel):
    name: str
    configured: bool
    entry_count: int = 0
    last_sync: Optional[datetime] = None


class ProviderStatusResponse(BaseModel):
    providers: List[ProviderStatus]
