from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field

from timehub.schemas.time_entry import CandidateEntry


class ImportResult(BaseModel):
    """Outcome of parsing one uploaded file."""
    entries: List[CandidateEntry] = Field(default_factory=list, description="Rows that parsed into entries")
    errors: List[str] = Field(default_factory=list, description="One message per row that could not be parsed")


class ImportAdapter(ABC):
    """Abstract Base Class for CSV import formats."""

    @abstractmethod
    def parse(self, raw_text: str) -> ImportResult:
        """Parses raw file content. Row-level failures go to ``errors``, never raise."""
        pass
