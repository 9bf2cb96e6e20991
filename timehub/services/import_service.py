import logging
from typing import List

from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timehub.adapters import detect_adapter
from timehub.providers.base import candidate_fields
from timehub.services.entry_store import TimeEntryStore

log = logging.getLogger(__name__)


class ImportSummary(BaseModel):
    filename: str
    adapter: str
    imported: int = 0
    errors: List[str] = Field(default_factory=list)


def import_file(db: Session, filename: str, content: str) -> ImportSummary:
    """
    Parse an uploaded CSV export and upsert every parsed row.

    Row errors are reported back and do not stop the import. Raises
    UnsupportedImportFormat when the file matches no known layout.
    """
    adapter = detect_adapter(filename, content)
    adapter_name = type(adapter).__name__
    log.info(f"Importing '{filename}' with {adapter_name}")

    result = adapter.parse(content)
    errors = list(result.errors)
    if errors:
        log.error(f"{len(errors)} rows of '{filename}' could not be parsed: {errors}")

    store = TimeEntryStore(db)
    imported = 0
    for entry in result.entries:
        update, create = candidate_fields(entry)
        try:
            store.upsert(entry.source.value, entry.external_id, update, create)
        except IntegrityError as e:
            errors.append(f"Entry {entry.external_id} rejected by storage: {e.orig}")
            log.warning(f"Upload row {entry.external_id} rejected by storage: {e.orig}")
            continue
        imported += 1

    log.info(f"Imported {imported} of {len(result.entries)} parsed entries from '{filename}'")
    return ImportSummary(filename=filename, adapter=adapter_name, imported=imported, errors=errors)
