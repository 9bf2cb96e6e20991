"""
Fan-out synchronization over every registered provider.

Providers run concurrently; one provider failing never affects the others.
Each provider opens its own database session, so there is no shared state
between the concurrent syncs beyond the database itself.
"""

import asyncio
import logging
from typing import List

from timehub.providers.base import SyncOptions, TimeProvider
from timehub.providers.registry import ProviderRegistry
from timehub.schemas.sync import ProviderSyncOutcome, SyncAllResponse

log = logging.getLogger(__name__)

NOT_CONFIGURED = "Provider not configured"


async def sync_provider(provider: TimeProvider, options: SyncOptions) -> ProviderSyncOutcome:
    name = provider.get_name()
    try:
        if not await provider.validate():
            log.warning(f"[{name}] Skipping sync: provider not configured or credentials rejected")
            return ProviderSyncOutcome(provider=name, success=False, error=NOT_CONFIGURED)

        result = await provider.sync(options)
        log.info(f"[{name}] Sync finished: {result.count} entries ({result.message})")
        return ProviderSyncOutcome(provider=name, success=True, result=result)
    except Exception as e:
        log.error(f"[{name}] Sync failed: {e}", exc_info=True)
        return ProviderSyncOutcome(provider=name, success=False, error=str(e) or type(e).__name__)


async def sync_all(registry: ProviderRegistry, force_refresh: bool = False) -> SyncAllResponse:
    """Sync every provider concurrently and collect per-provider outcomes."""
    providers = registry.all()
    options = SyncOptions(force_refresh=force_refresh)
    log.info(f"Starting sync of {len(providers)} providers (force_refresh={force_refresh})")

    outcomes: List[ProviderSyncOutcome] = await asyncio.gather(
        *(sync_provider(provider, options) for provider in providers)
    )

    succeeded = [outcome.result for outcome in outcomes if outcome.success and outcome.result]
    total = sum(result.count for result in succeeded)
    skipped = sum(getattr(result, "skipped", 0) for result in succeeded)
    failed = sum(1 for outcome in outcomes if not outcome.success)
    log.info(f"Sync of all providers complete: {total} imported, {skipped} skipped, {failed} failed")
    return SyncAllResponse(success=failed == 0, total_imported=total, total_skipped=skipped, results=outcomes)
