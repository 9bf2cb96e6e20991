import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from timehub.models.time_entry import EntrySource, TimeEntry
from timehub.schemas.time_entry import ManualEntryCreate, TimeEntryUpdate
from timehub.services.entry_store import TimeEntryStore
from timehub.utils.timeutils import calculate_duration, ensure_utc, generate_manual_external_id, get_zone, zoned_to_utc

log = logging.getLogger(__name__)


class ManualEntryService:
    """
    Turns validated user input into stored entries.

    Validation (time format, end after start, known timezone) already happened
    in the pydantic payloads, so nothing here touches storage on bad input.
    """

    def __init__(self, db: Session):
        self.store = TimeEntryStore(db)

    def create(self, payload: ManualEntryCreate) -> TimeEntry:
        tz_name = payload.timezone or "UTC"
        duration = calculate_duration(payload.start_time, payload.end_time)
        instant = zoned_to_utc(payload.date, payload.start_time, tz_name)
        external_id = generate_manual_external_id()

        log.info(f"Creating manual entry {external_id}: {payload.date} {payload.start_time}-{payload.end_time} {tz_name} ({duration:.2f}h)")
        return self.store.create(
            source=EntrySource.MANUAL.value,
            external_id=external_id,
            date=instant,
            duration=duration,
            project=payload.project or None,
            description=payload.description or None,
            start_time=payload.start_time,
            end_time=payload.end_time,
        )

    def update(self, entry_id: str, payload: TimeEntryUpdate) -> Optional[TimeEntry]:
        """Full replacement of an entry's editable fields. Returns None when the id is unknown."""
        fields: Dict[str, Any] = {
            "date": ensure_utc(payload.date),
            "duration": payload.duration,
            "project": payload.project,
            "description": payload.description,
            "source": payload.source.value,
            "start_time": payload.start_time,
            "end_time": payload.end_time,
        }

        if payload.source == EntrySource.MANUAL and payload.start_time and payload.end_time:
            tz_name = payload.timezone or "UTC"
            # An aware instant is read back on its local calendar day in tz_name.
            local = payload.date.astimezone(get_zone(tz_name)) if payload.date.tzinfo else payload.date
            day = local.date().isoformat()
            fields["duration"] = calculate_duration(payload.start_time, payload.end_time)
            fields["date"] = zoned_to_utc(day, payload.start_time, tz_name)
            log.debug(f"Recomputed manual entry {entry_id}: {day} {payload.start_time}-{payload.end_time} {tz_name}")

        entry = self.store.update(entry_id, fields)
        if entry is None:
            log.warning(f"Update requested for unknown entry {entry_id}")
        return entry
