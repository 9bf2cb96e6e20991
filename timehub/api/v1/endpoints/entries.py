from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from timehub.database import get_db
from timehub.exceptions import EntryConflictError
from timehub.models.time_entry import EntrySource
from timehub.schemas.time_entry import ManualEntryCreate, TimeEntryInDB, TimeEntryUpdate
from timehub.services.entry_store import TimeEntryStore
from timehub.services.manual_entry import ManualEntryService

log = logging.getLogger(__name__)
router = APIRouter()
stats_router = APIRouter()


@router.post("", response_model=TimeEntryInDB, status_code=status.HTTP_201_CREATED)
def create_entry(payload: ManualEntryCreate, db: Session = Depends(get_db)):
    """Create a manual entry from a date and a start/end wall-clock pair."""
    try:
        return ManualEntryService(db).create(payload)
    except EntryConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.put("/{entry_id}", response_model=TimeEntryInDB)
def update_entry(entry_id: str, payload: TimeEntryUpdate, db: Session = Depends(get_db)):
    try:
        entry = ManualEntryService(db).update(entry_id, payload)
    except EntryConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    return entry


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, db: Session = Depends(get_db)):
    if not TimeEntryStore(db).delete(entry_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    log.info(f"Deleted entry {entry_id}")
    return {"success": True}


@stats_router.get("", response_model=List[TimeEntryInDB])
def list_entries(
    start: Optional[datetime] = Query(None, description="Only entries at or after this instant"),
    end: Optional[datetime] = Query(None, description="Only entries at or before this instant"),
    source: Optional[EntrySource] = Query(None, description="Only entries of this source"),
    db: Session = Depends(get_db),
):
    """All entries, newest first."""
    return TimeEntryStore(db).find_many(
        source=source.value if source else None,
        start=start,
        end=end,
        descending=True,
    )
