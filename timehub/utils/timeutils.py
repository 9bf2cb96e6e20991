"""Duration and timezone helpers shared by every ingestion path."""

import calendar
import math
import re
import secrets
import string
import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_BASE36 = string.digits + string.ascii_lowercase


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for a strict ``HH:MM`` string."""
    match = HHMM_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def calculate_duration(start_time: str, end_time: str) -> float:
    """Hours between two same-day wall-clock times, as an unrounded decimal."""
    return (parse_hhmm(end_time) - parse_hhmm(start_time)) / 60


def parse_date(value: str) -> date:
    if not DATE_RE.match(value or ""):
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD")
    return date.fromisoformat(value)


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def zoned_to_utc(date_str: str, time_str: str, tz_name: Optional[str] = "UTC") -> datetime:
    """
    Interpret a wall-clock date and time in an IANA zone and return the
    matching aware UTC instant.

    ``time_str`` may be ``HH:MM`` or ``HH:MM:SS``.
    """
    tz = get_zone(tz_name)
    local = datetime.fromisoformat(f"{date_str}T{time_str}").replace(tzinfo=tz)
    return local.astimezone(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; they were stored as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_duration_hours(text: str) -> float:
    """
    Parse a duration given as ``H:MM:SS``, ``H:MM`` or decimal hours.

    Raises ValueError when the text is none of those.
    """
    value = (text or "").strip()
    if not value:
        raise ValueError("Empty duration")
    if ":" in value:
        parts = value.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"Invalid duration '{text}'")
        numbers = [float(part) for part in parts]
        hours = numbers[0] + numbers[1] / 60
        if len(numbers) == 3:
            hours += numbers[2] / 3600
    else:
        hours = float(value)
    if not math.isfinite(hours):
        raise ValueError(f"Invalid duration '{text}'")
    return hours


def _months_back(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def default_date_range(today: Optional[date] = None) -> Tuple[str, str]:
    """
    Default sync window: three calendar months ago through tomorrow.

    Tomorrow rather than today so same-day entries survive clock skew between
    this host and the upstream API.
    """
    today = today or datetime.now(timezone.utc).date()
    start = _months_back(today, 3)
    end = today + timedelta(days=1)
    return start.isoformat(), end.isoformat()


def generate_manual_external_id() -> str:
    """``MANUAL_<epoch-ms>_<7 base36 chars>``; unique without coordination."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"MANUAL_{int(time.time() * 1000)}_{suffix}"
