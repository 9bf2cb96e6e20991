"""
Entity store over TimeEntry.

The (source, external_id) uniqueness is enforced by the database index; upsert
is a single INSERT .. ON CONFLICT DO UPDATE statement so concurrent syncs for
the same source resolve in the database, not in application code.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timehub.exceptions import EntryConflictError
from timehub.models.time_entry import TimeEntry, _new_id
from timehub.utils.timeutils import ensure_utc, get_zone

log = logging.getLogger(__name__)

# Fields a re-sync is allowed to refresh; source and external_id stay fixed.
UPSERT_UPDATE_FIELDS = ("duration", "description", "project", "date")

ENTRY_FIELDS = ("source", "external_id", "date", "duration", "project", "description", "start_time", "end_time")


def _dialect_insert(dialect_name: str):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Upsert not supported for database dialect '{dialect_name}'")
    return insert


class TimeEntryStore:
    """Create, upsert, edit, delete and aggregate time entries."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, source: Optional[str] = None, start: Optional[datetime] = None, end: Optional[datetime] = None):
        return self._apply_filters(self.db.query(TimeEntry), source, start, end)

    @staticmethod
    def _apply_filters(q, source: Optional[str], start: Optional[datetime], end: Optional[datetime]):
        # Rows are stored in UTC; bounds must be compared in UTC too.
        if source:
            q = q.filter(TimeEntry.source == source)
        if start is not None:
            q = q.filter(TimeEntry.date >= ensure_utc(start))
        if end is not None:
            q = q.filter(TimeEntry.date <= ensure_utc(end))
        return q

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        return self.db.query(TimeEntry).filter(TimeEntry.id == entry_id).first()

    def create(self, **fields: Any) -> TimeEntry:
        """Plain insert. A duplicate (source, external_id) raises EntryConflictError."""
        entry = TimeEntry(
            id=_new_id(),
            created_at=datetime.now(timezone.utc),
            **{key: fields.get(key) for key in ENTRY_FIELDS},
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            log.error(f"Insert rejected for source={fields.get('source')} external_id={fields.get('external_id')}: {e.orig}")
            raise EntryConflictError(fields.get("source"), fields.get("external_id"), detail=str(e.orig))
        self.db.refresh(entry)
        return entry

    def upsert(self, source: str, external_id: str, update: Dict[str, Any], create: Dict[str, Any]) -> None:
        """
        Insert a row or, when (source, external_id) exists, overwrite the
        ``update`` fields in place. Commits per call.

        IntegrityError is propagated after rollback; callers decide whether a
        collision aborts their batch.
        """
        insert = _dialect_insert(self.db.get_bind().dialect.name)
        values = {key: create.get(key) for key in ENTRY_FIELDS if key in create}
        values.update(
            id=_new_id(),
            source=source,
            external_id=external_id,
            created_at=datetime.now(timezone.utc),
        )
        stmt = insert(TimeEntry).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[TimeEntry.source, TimeEntry.external_id],
            set_={key: update[key] for key in UPSERT_UPDATE_FIELDS if key in update},
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise

    def update(self, entry_id: str, fields: Dict[str, Any]) -> Optional[TimeEntry]:
        """Replace the given fields of one entry. Returns None when the id is unknown."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        for key in ENTRY_FIELDS:
            if key in fields:
                setattr(entry, key, fields[key])
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise EntryConflictError(fields.get("source", entry.source), fields.get("external_id", entry.external_id), detail=str(e.orig))
        self.db.refresh(entry)
        return entry

    def delete(self, entry_id: str) -> bool:
        entry = self.get(entry_id)
        if entry is None:
            return False
        self.db.delete(entry)
        self.db.commit()
        return True

    def find_many(
        self,
        source: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = True,
    ) -> List[TimeEntry]:
        order = TimeEntry.date.desc() if descending else TimeEntry.date.asc()
        return self._filtered(source, start, end).order_by(order).all()

    def count(self, source: Optional[str] = None, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        return self._filtered(source, start, end).count()

    def total_duration(self, source: Optional[str] = None, start: Optional[datetime] = None, end: Optional[datetime] = None) -> float:
        q = self.db.query(func.coalesce(func.sum(TimeEntry.duration), 0.0))
        q = self._apply_filters(q, source, start, end)
        return float(q.scalar() or 0.0)

    def duration_by_source(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, float]:
        q = self.db.query(TimeEntry.source, func.sum(TimeEntry.duration))
        q = self._apply_filters(q, None, start, end)
        return {source: float(hours or 0.0) for source, hours in q.group_by(TimeEntry.source).all()}

    def duration_by_day(self, start: Optional[datetime] = None, end: Optional[datetime] = None, tz_name: str = "UTC") -> Dict[str, float]:
        """Sum hours per calendar day as seen in ``tz_name`` (keys are YYYY-MM-DD)."""
        tz = get_zone(tz_name)
        totals: Dict[str, float] = defaultdict(float)
        for entry in self.find_many(start=start, end=end, descending=False):
            day = ensure_utc(entry.date).astimezone(tz).date().isoformat()
            totals[day] += entry.duration
        return dict(totals)

    def last_created_at(self, source: str) -> Optional[datetime]:
        latest = self.db.query(func.max(TimeEntry.created_at)).filter(TimeEntry.source == source).scalar()
        return ensure_utc(latest)
