import csv
import logging
import re
from io import StringIO

from timehub.adapters.base import ImportAdapter, ImportResult
from timehub.models.time_entry import EntrySource
from timehub.schemas.time_entry import CandidateEntry
from timehub.utils.timeutils import parse_duration_hours, zoned_to_utc

log = logging.getLogger(__name__)

BOM = "\ufeff"


class TogglCsvAdapter(ImportAdapter):
    """
    Parser for the Toggl Track "Detailed Report" CSV export.

    One data row per time entry; the columns used are ``Description``,
    ``Duration``, ``Project``, ``Start date`` and ``Start time``. Start date and
    time are wall-clock values interpreted in ``timezone``.
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone

    def parse(self, raw_text: str) -> ImportResult:
        result = ImportResult()

        content = raw_text or ""
        if content.startswith(BOM):
            content = content[1:]
        content = content.strip()

        try:
            rows = list(csv.DictReader(StringIO(content), skipinitialspace=True))
        except csv.Error as e:
            result.errors.append(f"Failed to parse Toggl CSV: {e}")
            return result

        log.info(f"Toggl CSV: {len(rows)} rows found")

        for row_number, row in enumerate(rows, start=1):
            row = {(key or "").strip(): (value or "").strip() for key, value in row.items() if isinstance(value, str) or value is None}
            if not any(row.values()):
                continue

            date_str = row.get("Start date", "")
            time_str = row.get("Start time", "") or "00:00:00"
            if not date_str:
                result.errors.append(f"Row {row_number}: missing 'Start date'")
                continue

            try:
                instant = zoned_to_utc(date_str, time_str, self.timezone)
            except ValueError as e:
                result.errors.append(f"Row {row_number}: invalid start '{date_str} {time_str}': {e}")
                continue

            try:
                duration = parse_duration_hours(row.get("Duration", ""))
            except ValueError:
                result.errors.append(f"Row {row_number}: invalid duration '{row.get('Duration', '')}'")
                continue

            if duration <= 0:
                log.debug(f"Toggl CSV row {row_number}: skipping non-positive duration {duration}")
                continue

            project = row.get("Project") or "No Project"
            compact_project = re.sub(r"\s", "", project)
            external_id = f"CSV_TOGGL_{int(instant.timestamp() * 1000)}_{compact_project}"

            result.entries.append(CandidateEntry(
                source=EntrySource.TOGGL_CSV,
                external_id=external_id,
                date=instant,
                duration=duration,
                project=project,
                description=row.get("Description", ""),
            ))

        log.info(f"Toggl CSV: parsed {len(result.entries)} entries, {len(result.errors)} errors")
        return result
