"""Run catalog jobs without the HTTP API.

Usage::

    python -m wallsync.jobs          # keep syncing on the configured interval
    python -m wallsync.jobs --once   # one sync plus maintenance, then exit

The exit status of ``--once`` is non-zero when every provider failed,
so it can be driven from cron.
"""

import argparse
import asyncio
import signal

from wallsync.config import config
from wallsync.jobs.catalog_sync import run_catalog_sync, run_maintenance
from wallsync.jobs.scheduler import (
    setup_all_jobs,
    shutdown_scheduler,
    start_scheduler,
    sync_interval_hours,
)
from wallsync.logging import get_logger, setup_logging
from wallsync.storage import close_engine, create_tables
from wallsync.sync import SyncSuccess, close_sync_orchestrator

logger = get_logger(__name__)


async def _run_once() -> int:
    result = await run_catalog_sync()
    await run_maintenance()
    return 0 if isinstance(result, SyncSuccess) else 1


async def _run_forever() -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    start_scheduler()
    setup_all_jobs()
    if config.sync_enabled:
        logger.info(f"Scheduler running, syncing every {sync_interval_hours()}h until stopped")
    else:
        logger.info("Scheduler running without periodic sync until stopped")

    try:
        await stop.wait()
        logger.info("Stop requested, shutting down scheduler")
    finally:
        shutdown_scheduler()
    return 0


async def _main(once: bool) -> int:
    await create_tables()
    try:
        return await (_run_once() if once else _run_forever())
    finally:
        await close_sync_orchestrator()
        await close_engine()


def main() -> None:
    parser = argparse.ArgumentParser(prog="python -m wallsync.jobs")
    parser.add_argument("--once", action="store_true", help="run a single sync and exit")
    args = parser.parse_args()

    setup_logging(config.log_level)
    raise SystemExit(asyncio.run(_main(args.once)))


if __name__ == "__main__":
    main()
