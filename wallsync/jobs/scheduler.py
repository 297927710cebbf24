"""In-process scheduling of catalog sync and aggregate maintenance.

Both jobs live in one AsyncIOScheduler with an in-memory job store.
Missed runs collapse into one and a job never overlaps itself; the sync
orchestrator's own lock still guards against a manual sync started from
the admin endpoint while the scheduled one is running.
"""

from datetime import datetime, timezone

from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from wallsync.logging import get_logger

logger = get_logger(__name__)

CATALOG_SYNC_JOB_ID = "catalog_sync"
MAINTENANCE_JOB_ID = "maintenance"

# Seconds a late job may still start after its scheduled time.
MISFIRE_GRACE_SECONDS = 300

_scheduler: AsyncIOScheduler | None = None


def get_scheduler() -> AsyncIOScheduler:
    """Return the process scheduler, building it on first use.

    Must be first called from inside a running event loop.
    """
    global _scheduler

    if _scheduler is None:
        _scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
            timezone=timezone.utc,
        )

    return _scheduler


def start_scheduler() -> None:
    scheduler = get_scheduler()
    if scheduler.running:
        return
    scheduler.start()
    logger.info("Job scheduler started")


def shutdown_scheduler() -> None:
    """Stop the scheduler and forget it, so a later start builds a fresh one."""
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.info(f"Stopping job scheduler with {len(_scheduler.get_jobs())} job(s)")
        _scheduler.shutdown(wait=True)
    _scheduler = None


def next_sync_at() -> datetime | None:
    """When the scheduled catalog sync fires next, if it is scheduled at all."""
    if _scheduler is None:
        return None
    job = _scheduler.get_job(CATALOG_SYNC_JOB_ID)
    if job is None:
        return None
    return getattr(job, "next_run_time", None)


def sync_interval_hours() -> int:
    """Configured sync interval with the minimum interval applied."""
    from wallsync.config import MIN_SYNC_INTERVAL_HOURS, config

    return max(config.sync_interval_hours, MIN_SYNC_INTERVAL_HOURS)


def setup_sync_job() -> str | None:
    """Schedule catalog sync.

    SYNC_ENABLED controls the periodic job, whose interval never drops
    below ``MIN_SYNC_INTERVAL_HOURS``. SYNC_ON_STARTUP makes a run due
    immediately: the first run of the periodic job, or a one-shot job
    when periodic sync is off.

    Returns:
        The job id, or None when neither trigger is enabled
    """
    from wallsync.config import config
    from wallsync.jobs.catalog_sync import run_catalog_sync

    if not config.sync_enabled:
        if not config.sync_on_startup:
            logger.info("Catalog sync disabled, no job scheduled")
            return None
        job = get_scheduler().add_job(
            run_catalog_sync,
            "date",
            run_date=datetime.now(timezone.utc),
            id=CATALOG_SYNC_JOB_ID,
            name="Catalog sync (startup)",
            replace_existing=True,
        )
        logger.info(f"Periodic catalog sync disabled, running once at startup (job_id={job.id})")
        return job.id

    interval_hours = sync_interval_hours()
    first_run = {"next_run_time": datetime.now(timezone.utc)} if config.sync_on_startup else {}

    job = get_scheduler().add_job(
        run_catalog_sync,
        "interval",
        hours=interval_hours,
        id=CATALOG_SYNC_JOB_ID,
        name="Catalog sync",
        replace_existing=True,
        **first_run,
    )
    logger.info(
        f"Catalog sync every {interval_hours}h"
        f"{', first run now' if first_run else ''} (job_id={job.id})"
    )
    return job.id


def setup_maintenance_job() -> str:
    """Schedule pruning of old interactions and weekly stats."""
    from wallsync.config import config
    from wallsync.jobs.catalog_sync import run_maintenance

    job = get_scheduler().add_job(
        run_maintenance,
        "interval",
        hours=config.maintenance_interval_hours,
        id=MAINTENANCE_JOB_ID,
        name="Aggregate maintenance",
        replace_existing=True,
    )
    logger.info(f"Aggregate maintenance every {config.maintenance_interval_hours}h (job_id={job.id})")
    return job.id


def setup_all_jobs() -> None:
    setup_sync_job()
    setup_maintenance_job()
