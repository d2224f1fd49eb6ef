"""
Scheduler: periodic catalog refresh from the remote inventory API.
"""
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pos_terminal.services.catalog_service import catalog_service
from pos_terminal.utils.config import settings
import logging

logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()


async def catalog_refresh_job():
    """Pull the latest products and stock levels."""
    try:
        logger.info("Running catalog refresh...")
        count = await catalog_service.refresh_from_remote()
        if count >= 0:
            logger.info(f"Catalog refresh completed: {count} products")
    except Exception as e:
        logger.error(f"Catalog refresh failed: {e}")


def configure_scheduler() -> bool:
    """
    Configure scheduled jobs. Returns False when there is nothing to schedule.

    The first catalog refresh runs as soon as the scheduler starts.
    """
    if not settings.INVENTORY_API_URL:
        logger.info("Scheduler idle: INVENTORY_API_URL not set")
        return False
    scheduler.add_job(catalog_refresh_job, IntervalTrigger(minutes=settings.CATALOG_REFRESH_MINUTES),
                      id="catalog_refresh", name="Catalog Refresh", replace_existing=True,
                      next_run_time=datetime.now())
    logger.info(f"Scheduler configured: catalog_refresh every {settings.CATALOG_REFRESH_MINUTES} min")
    return True


def start_scheduler():
    """Start the scheduler."""
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started.")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler shutdown.")
