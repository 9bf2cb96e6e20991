import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from timehub.exceptions import ProviderAPIError
from timehub.schemas.time_entry import CandidateEntry

log = logging.getLogger(__name__)


class SyncOptions(BaseModel):
    """Options of one provider sync call."""
    force_refresh: bool = Field(False, description="Ignore a fresh cache and query the API")
    custom_start: Optional[str] = Field(None, description="Explicit range start (YYYY-MM-DD)")
    custom_end: Optional[str] = Field(None, description="Explicit range end (YYYY-MM-DD)")

    @property
    def is_custom_range(self) -> bool:
        return bool(self.custom_start) and bool(self.custom_end)


class TimeProvider(ABC):
    """Abstract Base Class for every time tracking source that syncs from an API."""

    @abstractmethod
    def get_name(self) -> str:
        """Source tag the provider writes entries under."""
        pass

    @abstractmethod
    def get_cache_path(self) -> Path:
        """Location of the raw-response cache file."""
        pass

    @abstractmethod
    async def sync(self, options: Optional[SyncOptions] = None):
        """Fetches (or reads cached) raw entries and upserts them into storage."""
        pass

    @abstractmethod
    async def validate(self) -> bool:
        """Lightweight credential check. Never raises."""
        pass

    @abstractmethod
    async def fetch_from_api(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """Fetches raw records for an inclusive date range."""
        pass

    @abstractmethod
    def transform_entry(self, raw_entry: Dict[str, Any]) -> CandidateEntry:
        """Maps one raw record to a candidate entry."""
        pass


async def request_json(provider: str, client: httpx.AsyncClient, method: str, path: str, **kwargs) -> Any:
    """
    Make a request and decode the JSON body.

    HTTP errors and transport failures (including timeouts) are raised as
    ProviderAPIError carrying the upstream status and body. No retries.
    """
    try:
        log.trace(f"{provider} API {method} {path} params={kwargs.get('params', 'none')}")
        response = await client.request(method, path, **kwargs)
        log.trace(f"{provider} API response for {path}: {response.status_code}")
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        body = e.response.text
        log.error(f"{provider} API error for {e.request.url}: {status} - {body}")
        raise ProviderAPIError(provider, f"{provider} API error: {status} - {body}", status_code=status, body=body)
    except httpx.TimeoutException as e:
        log.error(f"{provider} API request timed out: {e}")
        raise ProviderAPIError(provider, f"{provider} API request timed out", body=str(e) or "timeout")
    except httpx.RequestError as e:
        log.error(f"{provider} API request failed: {e}")
        raise ProviderAPIError(provider, f"{provider} API request failed: {e}", body=str(e))


def candidate_fields(entry: CandidateEntry) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split a candidate into the (update, create) column sets of an upsert."""
    update = {
        "duration": entry.duration,
        "description": entry.description or None,
        "project": entry.project or None,
        "date": entry.date,
    }
    create = dict(update, source=entry.source.value, external_id=entry.external_id)
    return update, create
