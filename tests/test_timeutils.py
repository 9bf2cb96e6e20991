import re
from datetime import date, datetime, timezone

import pytest

from timehub.utils.timeutils import (
    calculate_duration,
    default_date_range,
    ensure_utc,
    generate_manual_external_id,
    parse_duration_hours,
    parse_hhmm,
    zoned_to_utc,
)


@pytest.mark.parametrize("start,end,expected", [
    ("09:00", "17:00", 8.0),
    ("11:00", "11:30", 0.5),
    ("09:17", "12:43", 3.4333),
    ("00:00", "23:59", 23.9833),
])
def test_calculate_duration(start, end, expected):
    assert calculate_duration(start, end) == pytest.approx(expected, abs=1e-4)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "12-30", "", "12:30:00"])
def test_parse_hhmm_rejects_malformed(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_zoned_to_utc_converts_wall_clock():
    assert zoned_to_utc("2026-01-22", "11:00", "Asia/Seoul") == datetime(2026, 1, 22, 2, 0, tzinfo=timezone.utc)
    # Crosses midnight into the next UTC day
    assert zoned_to_utc("2026-01-22", "23:00", "America/Los_Angeles") == datetime(2026, 1, 23, 7, 0, tzinfo=timezone.utc)
    assert zoned_to_utc("2026-01-22", "11:00") == datetime(2026, 1, 22, 11, 0, tzinfo=timezone.utc)


def test_zoned_to_utc_unknown_zone():
    with pytest.raises(ValueError, match="Unknown timezone"):
        zoned_to_utc("2026-01-22", "11:00", "Mars/Olympus")


@pytest.mark.parametrize("text,expected", [
    ("1:30:00", 1.5),
    ("0:45", 0.75),
    ("2.25", 2.25),
    ("00:00:36", 0.01),
])
def test_parse_duration_hours(text, expected):
    assert parse_duration_hours(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "abc", "1:2:3:4", "nan"])
def test_parse_duration_hours_invalid(text):
    with pytest.raises(ValueError):
        parse_duration_hours(text)


def test_default_date_range_clamps_month_end():
    assert default_date_range(date(2026, 5, 31)) == ("2026-02-28", "2026-06-01")
    assert default_date_range(date(2024, 5, 31)) == ("2024-02-29", "2024-06-01")
    assert default_date_range(date(2026, 1, 15)) == ("2025-10-15", "2026-01-16")


def test_ensure_utc():
    naive = datetime(2026, 1, 1, 12, 0)
    assert ensure_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_utc(None) is None


def test_generate_manual_external_id_format():
    first = generate_manual_external_id()
    second = generate_manual_external_id()
    assert re.fullmatch(r"MANUAL_\d{13}_[0-9a-z]{7}", first)
    assert first != second
