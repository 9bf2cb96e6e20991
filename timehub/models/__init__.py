"""Database models."""

from timehub.models.time_entry import EntrySource, TimeEntry

__all__ = [
    "EntrySource",
    "TimeEntry",
]
