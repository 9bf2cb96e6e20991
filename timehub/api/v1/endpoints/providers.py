import asyncio
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timehub.api.deps import get_registry
from timehub.database import get_db
from timehub.models.time_entry import EntrySource
from timehub.providers.registry import ProviderRegistry
from timehub.schemas.sync import ProviderStatus, ProviderStatusResponse
from timehub.services.entry_store import TimeEntryStore

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/status", response_model=ProviderStatusResponse)
async def providers_status(
    registry: ProviderRegistry = Depends(get_registry),
    db: Session = Depends(get_db),
):
    """Configuration state, entry count and last sync time of every source."""
    providers = registry.all()
    validity = await asyncio.gather(*(provider.validate() for provider in providers))
    store = TimeEntryStore(db)

    def status_of(name: str, configured: bool) -> ProviderStatus:
        return ProviderStatus(
            name=name,
            configured=configured,
            entry_count=store.count(source=name),
            last_sync=store.last_created_at(name),
        )

    statuses = [status_of(provider.get_name(), valid) for provider, valid in zip(providers, validity)]
    # Manual entries need no credentials.
    statuses.append(status_of(EntrySource.MANUAL.value, True))
    log.debug(f"Provider status: {[(s.name, s.configured) for s in statuses]}")
    return ProviderStatusResponse(providers=statuses)
