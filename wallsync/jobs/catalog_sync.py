"""Scheduled job bodies: catalog sync and aggregate maintenance."""

from wallsync.config import config
from wallsync.logging import get_logger
from wallsync.recs.tracker import InteractionTracker
from wallsync.sync import SyncError, SyncResult, perform_sync

logger = get_logger(__name__)


async def run_catalog_sync() -> SyncResult:
    """Run one catalog sync through the shared orchestrator.

    Returns:
        Result of the run (SyncSuccess(0) if one was already in progress)
    """
    result = await perform_sync()
    if isinstance(result, SyncError):
        logger.error(f"Catalog sync failed: {result.message}")
    else:
        logger.info(f"Catalog sync finished: {result.new_count} new items")
    return result


async def run_maintenance() -> tuple[int, int]:
    """Prune interactions and weekly stats past their retention.

    Returns:
        (deleted interactions, deleted weekly stats)
    """
    tracker = InteractionTracker()
    return await tracker.cleanup(
        interactions_days=config.interactions_retention_days,
        weekly_stats_weeks=config.weekly_stats_retention_weeks,
    )
