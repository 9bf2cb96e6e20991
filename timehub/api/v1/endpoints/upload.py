from typing import List
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from timehub.database import get_db
from timehub.exceptions import UnsupportedImportFormat
from timehub.services.import_service import import_file

log = logging.getLogger(__name__)
router = APIRouter()


class UploadResponse(BaseModel):
    message: str
    imported: int
    errors: List[str] = []


@router.post("", response_model=UploadResponse)
async def upload_csv(file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Import a Toggl detailed report or a Tempo logged-time report."""
    raw = await file.read()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File is not valid UTF-8 text")

    filename = file.filename or ""
    try:
        summary = import_file(db, filename, content)
    except UnsupportedImportFormat as e:
        log.warning(f"Rejected upload '{filename}': {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return UploadResponse(
        message=f"Imported {summary.imported} entries from {filename} ({summary.adapter})",
        imported=summary.imported,
        errors=summary.errors,
    )
