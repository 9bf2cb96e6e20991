from unittest.mock import AsyncMock, patch

import pytest

from timehub import scheduler
from timehub.providers.registry import ProviderRegistry
from timehub.schemas.sync import SyncAllResponse


@pytest.mark.asyncio
async def test_scheduled_job_runs_sync_all():
    registry = ProviderRegistry()
    response = SyncAllResponse(success=True, total_imported=0, results=[])
    with patch("timehub.scheduler.sync_all", AsyncMock(return_value=response)) as mock_sync:
        await scheduler.scheduled_sync_job(registry)

    mock_sync.assert_awaited_once_with(registry, force_refresh=False)
    assert scheduler._sync_running is False


@pytest.mark.asyncio
async def test_scheduled_job_skips_while_running(monkeypatch):
    monkeypatch.setattr(scheduler, "_sync_running", True)
    with patch("timehub.scheduler.sync_all", AsyncMock()) as mock_sync:
        await scheduler.scheduled_sync_job(ProviderRegistry())
    mock_sync.assert_not_awaited()


@pytest.mark.asyncio
async def test_scheduled_job_survives_failures():
    with patch("timehub.scheduler.sync_all", AsyncMock(side_effect=RuntimeError("boom"))):
        await scheduler.scheduled_sync_job(ProviderRegistry())
    assert scheduler._sync_running is False


def test_disabled_schedule_does_not_start():
    scheduler.start_scheduler(ProviderRegistry(), 0)
    assert scheduler.scheduler.get_job(scheduler.JOB_ID) is None
