"""APScheduler integration for the periodic provider refresh."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from timehub.providers.registry import ProviderRegistry
from timehub.services.sync_service import sync_all

log = logging.getLogger(__name__)

JOB_ID = "periodic_sync_job"

# Global scheduler instance
scheduler = AsyncIOScheduler()

# Guard: a tick is skipped while the previous run is still active
_sync_running = False


async def scheduled_sync_job(registry: ProviderRegistry):
    """Refresh all providers; the response cache keeps this cheap when nothing is stale."""
    global _sync_running

    if _sync_running:
        log.warning("Scheduled sync skipped: previous run still active")
        return

    _sync_running = True
    log.info("Starting scheduled sync job")
    try:
        response = await sync_all(registry, force_refresh=False)
        failed = [outcome.provider for outcome in response.results if not outcome.success]
        log.info(f"Scheduled sync completed: {response.total_imported} entries imported"
                 + (f", failed providers: {failed}" if failed else ""))
    except Exception as e:
        log.error(f"Scheduled sync failed: {e}", exc_info=True)
    finally:
        _sync_running = False


def start_scheduler(registry: ProviderRegistry, interval_minutes: int):
    """Start the APScheduler with one interval job. ``interval_minutes <= 0`` disables it."""
    if interval_minutes <= 0:
        log.info("Scheduled sync disabled (SYNC_SCHEDULE_MINUTES=0)")
        return

    scheduler.add_job(
        scheduled_sync_job,
        trigger=IntervalTrigger(minutes=interval_minutes),
        args=[registry],
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
    )
    if not scheduler.running:
        scheduler.start()
        log.info(f"APScheduler started, syncing every {interval_minutes} minutes")


def shutdown_scheduler():
    """Shutdown the APScheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        log.info("APScheduler shut down successfully")
