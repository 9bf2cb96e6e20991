from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TodaySummary(BaseModel):
    """Hours logged today in the summary timezone."""
    date: str  # YYYY-MM-DD
    timezone: str
    total_hours: float
    by_source: Dict[str, float] = Field(default_factory=dict)
    entry_count: int = 0


class DailyHours(BaseModel):
    date: str
    day_name: str  # Mon, Tue, ...
    hours: float


class WeekSummary(BaseModel):
    """Monday to Sunday totals with a per-day breakdown."""
    week_start: str
    week_end: str
    timezone: str
    total_hours: float
    daily: List[DailyHours]
    by_source: Dict[str, float] = Field(default_factory=dict)
    entry_count: int = 0


class JiraConfig(BaseModel):
    base_url: Optional[str] = None
    configured: bool
