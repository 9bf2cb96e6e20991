import csv
import logging
import math
from datetime import datetime, timezone
from io import StringIO
from typing import Dict, List

from timehub.adapters.base import ImportAdapter, ImportResult
from timehub.models.time_entry import EntrySource
from timehub.schemas.time_entry import CandidateEntry

log = logging.getLogger(__name__)

# Header format of the per-day columns, e.g. "01/Dec/25"
HEADER_DATE_FORMAT = "%d/%b/%y"
TOTAL_MARKER = "Total"


def _parse_header_date(header: str):
    try:
        return datetime.strptime(header.strip(), HEADER_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class TempoCsvAdapter(ImportAdapter):
    """
    Parser for the Tempo "Logged Time" report.

    The report is a matrix: one row per issue, one column per calendar day,
    cells hold the hours logged on that issue that day. Example header:
    ``,Issue,Key,Logged,01/Dec/25,02/Dec/25``. The last row is a totals row.
    """

    def parse(self, raw_text: str) -> ImportResult:
        result = ImportResult()

        try:
            rows: List[List[str]] = [
                [cell.strip() for cell in row]
                for row in csv.reader(StringIO((raw_text or "").lstrip("\ufeff")))
                if any(cell.strip() for cell in row)
            ]
        except csv.Error as e:
            result.errors.append(f"Failed to parse Tempo CSV: {e}")
            return result

        if len(rows) < 2:
            result.errors.append("Tempo CSV is too short")
            return result

        header = rows[0]
        date_columns: Dict[int, datetime] = {}
        for index, column in enumerate(header):
            parsed = _parse_header_date(column)
            if parsed is not None:
                date_columns[index] = parsed

        issue_col = header.index("Issue") if "Issue" in header else 1
        key_col = header.index("Key") if "Key" in header else 2
        log.debug(f"Tempo CSV: {len(date_columns)} date columns, issue column {issue_col}, key column {key_col}")

        for row in rows[1:]:
            if TOTAL_MARKER in row[:2]:
                continue

            issue = row[issue_col] if issue_col < len(row) else ""
            key = row[key_col] if key_col < len(row) else ""

            for index, day in date_columns.items():
                cell = row[index] if index < len(row) else ""
                if not cell:
                    continue
                try:
                    hours = float(cell)
                except ValueError:
                    continue
                if not math.isfinite(hours) or hours <= 0:
                    continue

                result.entries.append(CandidateEntry(
                    source=EntrySource.TEMPO_CSV,
                    external_id=f"CSV_TEMPO_{day:%Y%m%d}_{key}_{hours:g}",
                    date=day,
                    duration=hours,
                    project=key,
                    description=issue,
                ))

        log.info(f"Tempo CSV: parsed {len(result.entries)} entries from {len(rows) - 1} rows")
        return result
