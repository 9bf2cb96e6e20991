from timehub.adapters.base import ImportAdapter, ImportResult
from timehub.adapters.tempo_csv import TempoCsvAdapter
from timehub.adapters.toggl_csv import TogglCsvAdapter
from timehub.exceptions import UnsupportedImportFormat


def detect_adapter(filename: str, content: str) -> ImportAdapter:
    """Pick the import format from the file name, falling back to the Tempo header signature."""
    if "toggl" in (filename or "").lower():
        return TogglCsvAdapter()
    if "Issue,Key" in content:
        return TempoCsvAdapter()
    raise UnsupportedImportFormat(
        'Unknown CSV format. Rename the file to include "toggl" or upload a Tempo logged-time report.'
    )


__all__ = [
    "ImportAdapter",
    "ImportResult",
    "TempoCsvAdapter",
    "TogglCsvAdapter",
    "detect_adapter",
]
