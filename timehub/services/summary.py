"""Today and this-week summaries, computed in the configured summary timezone."""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from timehub.schemas.summary import DailyHours, TodaySummary, WeekSummary
from timehub.services.entry_store import TimeEntryStore
from timehub.utils.timeutils import get_zone

log = logging.getLogger(__name__)


def _round(hours: float) -> float:
    return round(hours, 2)


class SummaryService:

    def __init__(self, db: Session, tz_name: str = "UTC"):
        self.store = TimeEntryStore(db)
        self.tz_name = tz_name
        self.tz = get_zone(tz_name)

    def _local_today(self, now: Optional[datetime]) -> date:
        now = now or datetime.now(timezone.utc)
        return now.astimezone(self.tz).date()

    def _bounds(self, first_day: date, last_day: date) -> Tuple[datetime, datetime]:
        """UTC instants covering local midnight of ``first_day`` to the end of ``last_day``."""
        start = datetime.combine(first_day, time.min, tzinfo=self.tz).astimezone(timezone.utc)
        end = datetime.combine(last_day + timedelta(days=1), time.min, tzinfo=self.tz).astimezone(timezone.utc)
        return start, end - timedelta(microseconds=1)

    def today(self, now: Optional[datetime] = None) -> TodaySummary:
        day = self._local_today(now)
        start, end = self._bounds(day, day)
        log.debug(f"Today summary for {day} ({self.tz_name}): {start} .. {end}")

        by_source = self.store.duration_by_source(start, end)
        return TodaySummary(
            date=day.isoformat(),
            timezone=self.tz_name,
            total_hours=_round(sum(by_source.values())),
            by_source={source: _round(hours) for source, hours in by_source.items()},
            entry_count=self.store.count(start=start, end=end),
        )

    def week(self, now: Optional[datetime] = None) -> WeekSummary:
        today = self._local_today(now)
        monday = today - timedelta(days=today.weekday())
        sunday = monday + timedelta(days=6)
        start, end = self._bounds(monday, sunday)
        log.debug(f"Week summary {monday}..{sunday} ({self.tz_name})")

        per_day = self.store.duration_by_day(start, end, self.tz_name)
        daily = []
        for offset in range(7):
            day = monday + timedelta(days=offset)
            key = day.isoformat()
            daily.append(DailyHours(date=key, day_name=day.strftime("%a"), hours=_round(per_day.get(key, 0.0))))

        by_source = self.store.duration_by_source(start, end)
        return WeekSummary(
            week_start=monday.isoformat(),
            week_end=sunday.isoformat(),
            timezone=self.tz_name,
            total_hours=_round(sum(by_source.values())),
            daily=daily,
            by_source={source: _round(hours) for source, hours in by_source.items()},
            entry_count=self.store.count(start=start, end=end),
        )
