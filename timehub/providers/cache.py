"""On-disk raw response cache and the cache-or-fetch decision shared by all providers."""

import json
import logging
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple

from timehub.utils.timeutils import default_date_range

log = logging.getLogger(__name__)

DEFAULT_MAX_AGE_SECONDS = 600  # 10 minutes


class ResponseCache:
    """
    One JSON file per provider holding the last raw API response.

    Freshness comes from the file's modification time. Reads and writes are
    whole-file and unlocked; concurrent writers may race, storage upserts keep
    the data correct regardless.
    """

    def __init__(self, path: Path, max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS):
        self.path = Path(path)
        self.max_age_seconds = max_age_seconds

    def age_seconds(self) -> Optional[float]:
        if not self.path.exists():
            return None
        return time.time() - self.path.stat().st_mtime

    def read(self) -> Optional[List[Any]]:
        age = self.age_seconds()
        if age is None or age >= self.max_age_seconds:
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            log.warning(f"Ignoring unreadable cache {self.path}: {e}")
            return None
        log.info(f"Using cached data from {self.path} (age {age:.0f}s)")
        return data

    def write(self, data: List[Any]) -> None:
        log.info(f"Writing {len(data)} entries to cache: {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


async def load_raw_entries(provider, cache: ResponseCache, options) -> Tuple[List[Any], bool]:
    """
    Return ``(raw_entries, used_cache)`` for one sync call.

    A custom date range never reads nor writes the cache, so one-off queries
    cannot replace the default-window snapshot.
    """
    custom = options.is_custom_range

    if not options.force_refresh and not custom:
        cached = cache.read()
        if cached is not None:
            return cached, True

    if custom:
        start, end = options.custom_start, options.custom_end
    else:
        start, end = default_date_range()

    log.info(f"[{provider.get_name()}] Fetching fresh data from API for {start} to {end}")
    raw_entries = await provider.fetch_from_api(start, end)

    if custom:
        log.info(f"[{provider.get_name()}] Custom range sync, skipping cache write")
    else:
        cache.write(raw_entries)

    return raw_entries, False
