from typing import Optional, Union
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from timehub.api.deps import get_registry
from timehub.exceptions import EntryConflictError, ProviderAPIError, ProviderConfigError
from timehub.providers.base import SyncOptions
from timehub.providers.registry import ProviderRegistry
from timehub.schemas.sync import SyncAllResponse, SyncRequest, TempoSyncResult, TogglSyncResult
from timehub.services.sync_service import sync_all

log = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=SyncAllResponse)
async def run_sync_all(
    force: bool = Query(False, description="Bypass the response cache"),
    registry: ProviderRegistry = Depends(get_registry),
):
    """Sync every configured provider concurrently."""
    log.info(f"Sync of all providers requested (force={force})")
    return await sync_all(registry, force_refresh=force)


@router.post("/{provider}", response_model=Union[TogglSyncResult, TempoSyncResult])
async def run_provider_sync(
    provider: str,
    request: Optional[SyncRequest] = None,
    force: bool = Query(False, description="Bypass the response cache"),
    registry: ProviderRegistry = Depends(get_registry),
):
    """Sync one provider, optionally over an explicit date range."""
    try:
        instance = registry.get(provider)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown provider: {provider}")

    options = SyncOptions(
        force_refresh=force,
        custom_start=request.start_date if request else None,
        custom_end=request.end_date if request else None,
    )
    log.info(f"Sync request received for {instance.get_name()}: force={force}, "
             f"range={options.custom_start or 'default'}..{options.custom_end or 'default'}")

    try:
        return await instance.sync(options)
    except ProviderConfigError as e:
        log.warning(f"Sync of {instance.get_name()} refused: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProviderAPIError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "message": str(e),
                "upstream_status": e.status_code,
                "upstream_body": e.body,
            },
        )
    except EntryConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(e),
                "source": e.source,
                "external_id": e.external_id,
                "issue": e.issue,
            },
        )
