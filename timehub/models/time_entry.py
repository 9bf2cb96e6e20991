"""Time entry model: the canonical record every source is normalized into."""

import enum
import uuid

from sqlalchemy import Column, String, Float, DateTime, Text, Index
from sqlalchemy.sql import func
from timehub.database import Base


class EntrySource(str, enum.Enum):
    """Closed set of origins a time entry can come from."""

    TOGGL = "TOGGL"
    TEMPO = "TEMPO"
    MANUAL = "MANUAL"
    TOGGL_CSV = "TOGGL_CSV"
    TEMPO_CSV = "TEMPO_CSV"


def _new_id() -> str:
    return str(uuid.uuid4())


class TimeEntry(Base):
    """Normalized time entry from any source system."""

    __tablename__ = "time_entries"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Source information
    source = Column(String(20), nullable=False, index=True)  # EntrySource value
    external_id = Column(String(255), nullable=True)  # Upstream or synthesized identifier

    # Work period
    date = Column(DateTime(timezone=True), nullable=False)  # Start instant, UTC
    duration = Column(Float, nullable=False)  # Hours
    project = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    # Wall-clock input of manual entries, HH:MM
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    # Timestamp
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_time_entries_source_external_id', 'source', 'external_id', unique=True),
        Index('idx_time_entries_date', 'date'),
    )

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, source='{self.source}', external_id='{self.external_id}', hours={self.duration})>"
