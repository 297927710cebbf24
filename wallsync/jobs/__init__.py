"""Scheduled catalog sync and maintenance jobs."""

from wallsync.jobs.catalog_sync import run_catalog_sync, run_maintenance
from wallsync.jobs.scheduler import (
    get_scheduler,
    next_sync_at,
    setup_all_jobs,
    setup_maintenance_job,
    setup_sync_job,
    shutdown_scheduler,
    start_scheduler,
    sync_interval_hours,
)

__all__ = [
    "get_scheduler",
    "next_sync_at",
    "run_catalog_sync",
    "run_maintenance",
    "setup_all_jobs",
    "setup_maintenance_job",
    "setup_sync_job",
    "shutdown_scheduler",
    "start_scheduler",
    "sync_interval_hours",
]
