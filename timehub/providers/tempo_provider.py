import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timehub.config import Settings
from timehub.exceptions import EntryConflictError, ProviderConfigError
from timehub.models.time_entry import EntrySource
from timehub.providers.base import SyncOptions, TimeProvider, candidate_fields, request_json
from timehub.providers.cache import ResponseCache, load_raw_entries
from timehub.schemas.sync import TempoSyncResult
from timehub.schemas.time_entry import CandidateEntry
from timehub.services.entry_store import TimeEntryStore

log = logging.getLogger(__name__)

UNKNOWN_ISSUE = "Unknown Issue"


class IssueKeyCounters(BaseModel):
    """Diagnostics of one sync call: how issue labels were resolved."""
    resolved: int = 0
    fallback: int = 0


def issue_label(raw_entry: Dict[str, Any]) -> str:
    """Best available issue identifier of a worklog: key, then numeric id, then the unknown marker."""
    issue = raw_entry.get("issue") or {}
    if issue.get("key"):
        return issue["key"]
    if issue.get("id"):
        return f"Issue #{issue['id']}"
    return UNKNOWN_ISSUE


class TempoProvider(TimeProvider):
    """
    Provider for Tempo worklogs (API v4), which are attached to Jira issues.

    The project column is rendered as ``"<issue key> - <project name>"`` when
    the response carries both, degrading to ``"Issue #<id>"`` and finally to
    ``"Unknown Issue"``.
    """

    def __init__(self, settings: Settings, session_factory: Callable[[], Session]):
        self.settings = settings
        self.session_factory = session_factory
        self.cache = ResponseCache(settings.cache_path / "tempo_cache.json", settings.cache_max_age_seconds)

    def get_name(self) -> str:
        return EntrySource.TEMPO.value

    def get_cache_path(self) -> Path:
        return self.cache.path

    def _client(self, token: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.tempo_api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json"
            },
            timeout=self.settings.http_timeout_seconds,
        )

    async def sync(self, options: Optional[SyncOptions] = None) -> TempoSyncResult:
        options = options or SyncOptions()
        counters = IssueKeyCounters()

        raw_entries, used_cache = await load_raw_entries(self, self.cache, options)

        if raw_entries:
            log.debug(f"First raw Tempo worklog: {raw_entries[0]}")

        pairs = [(raw, self.transform_entry(raw, counters)) for raw in raw_entries]

        count = 0
        with self.session_factory() as db:
            store = TimeEntryStore(db)
            log.info(f"[TEMPO DB] Processing {len(pairs)} entries...")
            for raw, entry in pairs:
                update, create = candidate_fields(entry)
                try:
                    store.upsert(entry.source.value, entry.external_id, update, create)
                except IntegrityError as e:
                    issue = issue_label(raw)
                    log.error(f"[TEMPO DB] Storage collision on worklog {entry.external_id} ({issue}), aborting sync: {e.orig}")
                    raise EntryConflictError(entry.source.value, entry.external_id, issue=issue, detail=str(e.orig))
                count += 1
        log.info(f"[TEMPO DB] Upserted {count} entries.")

        return TempoSyncResult(
            count=count,
            cached=used_cache,
            message="Loaded from cache" if used_cache else "Fetched fresh from Tempo API",
            issue_keys_resolved=counters.resolved,
            issue_keys_fallback=counters.fallback,
            jira_base_url=self.settings.jira_base_url,
        )

    async def fetch_from_api(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        token = self.settings.tempo_api_token
        if not token:
            raise ProviderConfigError("TEMPO_API_TOKEN not configured (check environment or /run/secrets)")

        # TODO: follow metadata.next once a single request can exceed 1000 worklogs
        async with self._client(token) as client:
            data = await request_json(
                self.get_name(), client, "GET", "/worklogs",
                params={"from": start_date, "to": end_date, "limit": 1000},
            )
        results = data.get("results", []) if isinstance(data, dict) else []
        log.info(f"Tempo API returned {len(results)} worklogs for {start_date} to {end_date}")
        return results

    def transform_entry(self, raw_entry: Dict[str, Any], counters: Optional[IssueKeyCounters] = None) -> CandidateEntry:
        counters = counters if counters is not None else IssueKeyCounters()
        worklog_id = raw_entry["tempoWorklogId"]
        issue = raw_entry.get("issue") or {}

        project_name = ""
        if issue.get("key"):
            counters.resolved += 1
            log.trace(f"Worklog {worklog_id}: using issue key {issue['key']}")
            project_name = (issue.get("project") or {}).get("name") or ""
        elif issue.get("id"):
            counters.fallback += 1
            log.debug(f"Worklog {worklog_id}: no issue key, using id {issue['id']}")

        label = issue_label(raw_entry)
        project_display = f"{label} - {project_name}" if project_name else label

        start = datetime.fromisoformat(raw_entry["startDate"])
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)

        return CandidateEntry(
            source=EntrySource.TEMPO,
            external_id=str(worklog_id),
            date=start,
            duration=raw_entry["timeSpentSeconds"] / 3600,
            project=project_display,
            description=raw_entry.get("description") or raw_entry.get("comment") or "",
        )

    async def validate(self) -> bool:
        token = self.settings.tempo_api_token
        if not token:
            return False
        try:
            async with self._client(token) as client:
                await request_json(self.get_name(), client, "GET", "/worklogs", params={"limit": 1})
            return True
        except Exception as e:
            log.debug(f"Tempo validation failed: {e}")
            return False
