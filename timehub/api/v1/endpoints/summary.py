from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timehub.config import settings
from timehub.database import get_db
from timehub.schemas.summary import TodaySummary, WeekSummary
from timehub.services.summary import SummaryService

router = APIRouter()


@router.get("/today", response_model=TodaySummary)
def summary_today(db: Session = Depends(get_db)):
    """Today's total hours and the split per source."""
    return SummaryService(db, settings.summary_timezone).today()


@router.get("/week", response_model=WeekSummary)
def summary_week(db: Session = Depends(get_db)):
    """Monday to Sunday of the current week, with a daily breakdown."""
    return SummaryService(db, settings.summary_timezone).week()
