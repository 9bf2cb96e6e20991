import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timehub.config import Settings
from timehub.exceptions import ProviderConfigError
from timehub.models.time_entry import EntrySource
from timehub.providers.base import SyncOptions, TimeProvider, candidate_fields, request_json
from timehub.providers.cache import ResponseCache, load_raw_entries
from timehub.schemas.sync import TogglSyncResult
from timehub.schemas.time_entry import CandidateEntry
from timehub.services.entry_store import TimeEntryStore

log = logging.getLogger(__name__)

NO_PROJECT = "No Project"


class TogglProvider(TimeProvider):
    """
    Provider for Toggl Track (API v9).

    Durations arrive in seconds; a negative duration marks a running timer and
    is dropped before transform. Zero-length entries are kept.
    """

    def __init__(self, settings: Settings, session_factory: Callable[[], Session]):
        self.settings = settings
        self.session_factory = session_factory
        self.cache = ResponseCache(settings.cache_path / "toggl_cache.json", settings.cache_max_age_seconds)

    def get_name(self) -> str:
        return EntrySource.TOGGL.value

    def get_cache_path(self) -> Path:
        return self.cache.path

    def _client(self, token: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.toggl_api_url,
            auth=(token, "api_token"),
            headers={"Content-Type": "application/json"},
            timeout=self.settings.http_timeout_seconds,
        )

    async def sync(self, options: Optional[SyncOptions] = None) -> TogglSyncResult:
        options = options or SyncOptions()
        log.info(f"Toggl sync requested: force={options.force_refresh}, start={options.custom_start}, end={options.custom_end}")

        raw_entries, used_cache = await load_raw_entries(self, self.cache, options)

        candidates = [
            self.transform_entry(raw)
            for raw in raw_entries
            if raw.get("duration", 0) >= 0
        ]

        count = 0
        skipped = 0
        with self.session_factory() as db:
            store = TimeEntryStore(db)
            log.info(f"[TOGGL DB] Processing {len(candidates)} entries...")
            for entry in candidates:
                update, create = candidate_fields(entry)
                try:
                    store.upsert(entry.source.value, entry.external_id, update, create)
                except IntegrityError as e:
                    skipped += 1
                    log.warning(f"[TOGGL DB] Skipping entry {entry.external_id} after storage collision: {e.orig}")
                    continue
                count += 1
        log.info(f"[TOGGL DB] Upserted {count} entries, skipped {skipped}.")

        return TogglSyncResult(
            count=count,
            cached=used_cache,
            message="Loaded from cache" if used_cache else "Fetched fresh from Toggl API",
            skipped=skipped,
        )

    async def fetch_from_api(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        token = self.settings.toggl_api_token
        if not token:
            raise ProviderConfigError("TOGGL_API_TOKEN not configured (check environment or /run/secrets)")

        async with self._client(token) as client:
            data = await request_json(
                self.get_name(), client, "GET", "/me/time_entries",
                params={"start_date": start_date, "end_date": end_date},
            )
        log.info(f"Toggl API returned {len(data)} time entries for {start_date} to {end_date}")
        return data

    def transform_entry(self, raw_entry: Dict[str, Any]) -> CandidateEntry:
        log.trace(f"Raw Toggl entry: {raw_entry}")
        project_id = raw_entry.get("project_id")
        return CandidateEntry(
            source=EntrySource.TOGGL,
            external_id=str(raw_entry["id"]),
            date=datetime.fromisoformat(raw_entry["start"].replace("Z", "+00:00")),
            duration=raw_entry["duration"] / 3600,
            project=f"Proj-{project_id}" if project_id else NO_PROJECT,
            description=raw_entry.get("description"),
        )

    async def validate(self) -> bool:
        token = self.settings.toggl_api_token
        if not token:
            return False
        try:
            async with self._client(token) as client:
                await request_json(self.get_name(), client, "GET", "/me")
            return True
        except Exception as e:
            log.debug(f"Toggl validation failed: {e}")
            return False
