"""Sync orchestrator: the provider fallback chain.

One run walks the configured providers in priority order, merges what each
returns into the catalog without duplicates, sweeps stale items and records
the outcome in the sync status row. Concurrent callers collapse into a
no-op success instead of queuing behind the running sync.
"""

import asyncio
import functools
import random
from datetime import timedelta

from sqlalchemy.exc import StatementError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallsync.logging import get_logger
from wallsync.providers.base import CatalogRecord, ProviderAdapter
from wallsync.providers.result import Err
from wallsync.providers.retry import RetryPolicy, Sleep, retry_with_backoff
from wallsync.storage import CatalogRepo, ChangeFeed, SyncStatusRepo, get_change_feed, get_session_factory
from wallsync.sync.results import ProviderOutcome, SyncError, SyncResult, SyncSuccess
from wallsync.timeutils import utc_now

logger = get_logger(__name__)


def describe_error(error: Exception) -> str:
    """Short text for an unexpected failure, safe to store and return over HTTP.

    Database errors are reduced to the driver message; their full text
    carries the SQL statement and bound parameters.
    """
    if isinstance(error, StatementError) and error.orig is not None:
        return f"{type(error.orig).__name__}: {error.orig}"
    return str(error) or type(error).__name__


class SyncOrchestrator:
    """Runs sync across provider adapters with single-flight semantics."""

    def __init__(
        self,
        providers: list[ProviderAdapter],
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        cfg=None,
        retry_policy: RetryPolicy | None = None,
        feed: ChangeFeed | None = None,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            providers: Adapters in fallback-chain order
            session_factory: Session factory, defaults to the app database
            cfg: Config instance, defaults to the loaded environment config
            retry_policy: Backoff for each provider request
            feed: Change feed notified on catalog/status writes
            sleep: Awaitable sleep used for pauses and backoff (tests)
            rng: Random source for search term choice
        """
        if cfg is None:
            from wallsync.config import config as cfg

        self.providers = providers
        self.session_factory = session_factory or get_session_factory()
        self.cfg = cfg
        self.retry_policy = retry_policy or RetryPolicy.from_config(cfg)
        self.feed = feed or get_change_feed()
        self.sleep = sleep
        self.rng = rng
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def perform_sync(self) -> SyncResult:
        """Run one sync unless another is already in progress.

        Returns:
            SyncSuccess(new_count) if any provider succeeded, SyncSuccess(0)
            if a sync was already running, otherwise SyncError
        """
        # Uncontended acquire does not suspend, so check-then-acquire is atomic
        if self._lock.locked():
            logger.info("Sync already in progress, skipping")
            return SyncSuccess(0)

        async with self._lock:
            return await self._run()

    async def _run(self) -> SyncResult:
        started_at = utc_now()
        logger.info(f"Starting sync with {len(self.providers)} providers")

        try:
            async with self.session_factory() as session:
                status_repo = SyncStatusRepo(session, self.feed)
                await status_repo.get_or_create()
                await status_repo.set_syncing(True)

            async with self.session_factory() as session:
                existing_ids = await CatalogRepo(session, self.feed).get_all_keys()
                cursors = await SyncStatusRepo(session, self.feed).get_cursors()
            logger.debug(f"Existing catalog items: {len(existing_ids)}")

            total_new = 0
            errors: list[str] = []
            successful: list[str] = []
            next_cursors: dict[str, int] = {}
            attempted = 0

            for adapter in self.providers:
                if not adapter.has_credentials():
                    logger.info(f"{adapter.name} skipped: credentials not configured")
                    continue

                if attempted:
                    await self.sleep(self.cfg.sync_provider_delay_seconds)
                attempted += 1

                cursor = cursors.get(adapter.name, 1)
                outcome = await self._sync_provider(adapter, existing_ids, cursor)

                if outcome.success:
                    total_new += outcome.count
                    successful.append(adapter.name)
                    next_cursor = adapter.next_cursor(cursor)
                    if next_cursor is not None:
                        next_cursors[adapter.name] = next_cursor
                    logger.info(f"{adapter.name}: {outcome.count} inserted")
                else:
                    errors.append(f"{adapter.name.capitalize()}: {outcome.error or 'unknown'}")
                    logger.error(f"{adapter.name} failed: {outcome.error}")

            deleted = await self._cleanup_old_items()
            if deleted:
                logger.info(f"Cleaned up {deleted} old catalog items")

            async with self.session_factory() as session:
                status_repo = SyncStatusRepo(session, self.feed)

                if successful:
                    await status_repo.update_last_sync(successful, total_new)
                    if next_cursors:
                        await status_repo.update_cursors(next_cursors)
                    duration = (utc_now() - started_at).total_seconds()
                    logger.info(
                        f"Sync completed in {duration:.1f}s: {total_new} new items "
                        f"from {','.join(successful)}"
                    )
                    return SyncSuccess(total_new)

                message = "All sources failed"
                if errors:
                    message = f"All sources failed: {'; '.join(errors)}"
                await status_repo.set_error(message)
                logger.error(message)
                return SyncError(message)

        except Exception as e:
            message = describe_error(e)
            logger.exception(f"Sync failed: {message}")
            async with self.session_factory() as session:
                await SyncStatusRepo(session, self.feed).set_error(message)
            return SyncError(message)

        finally:
            await self._clear_syncing_flag()

    async def _sync_provider(
        self,
        adapter: ProviderAdapter,
        existing_ids: set[str],
        cursor: int,
    ) -> ProviderOutcome:
        """Fetch, filter and persist one provider's records.

        The provider counts as successful if at least one of its requests
        succeeded, even when nothing new was inserted.
        """
        collected: list[CatalogRecord] = []
        successful_requests = 0
        last_error: str | None = None

        requests = adapter.plan_requests(cursor, self.rng)
        for index, request in enumerate(requests):
            if index:
                await self.sleep(self.cfg.sync_request_delay_seconds)

            label = f"{adapter.name} {request.category.value} page {request.page}"
            try:
                result = await retry_with_backoff(
                    functools.partial(adapter.search, request.query, request.category, request.page),
                    self.retry_policy,
                    label=label,
                    sleep=self.sleep,
                )
            except Exception as e:
                logger.warning(f"{label} raised: {e!r}")
                last_error = describe_error(e)
                continue

            if isinstance(result, Err):
                logger.warning(f"{label} failed: {result}")
                last_error = str(result)
                continue

            successful_requests += 1
            records = adapter.translate(result.value, request.category, request.query)
            collected.extend(records)
            logger.debug(f"{label}: {len(records)} records")

        if successful_requests == 0:
            return ProviderOutcome(
                adapter.name,
                success=False,
                error=last_error or "No successful responses",
            )

        fresh = self._select_new(collected, existing_ids)

        try:
            synced_at = utc_now()
            async with self.session_factory() as session:
                inserted = await CatalogRepo(session, self.feed).insert_ignore_on_conflict(
                    [record.to_row(synced_at) for record in fresh]
                )
        except Exception as e:
            message = describe_error(e)
            logger.exception(f"{adapter.name} insert failed: {message}")
            return ProviderOutcome(adapter.name, success=False, error=message)

        existing_ids.update(record.id for record in fresh)
        return ProviderOutcome(adapter.name, success=True, count=inserted)

    def _select_new(
        self,
        records: list[CatalogRecord],
        existing_ids: set[str],
    ) -> list[CatalogRecord]:
        """Drop known items and in-batch repeats, then cap the batch."""
        limit = self.cfg.sync_max_per_provider
        seen: set[str] = set()
        fresh: list[CatalogRecord] = []

        for record in records:
            if record.id in existing_ids or record.source_id in seen:
                continue
            seen.add(record.source_id)
            fresh.append(record)
            if len(fresh) >= limit:
                break

        return fresh

    async def _cleanup_old_items(self) -> int:
        cutoff = utc_now() - timedelta(days=self.cfg.sync_retention_days)
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).delete_older_than(cutoff, exclude_cached=True)

    async def _clear_syncing_flag(self) -> None:
        try:
            async with self.session_factory() as session:
                await SyncStatusRepo(session, self.feed).set_syncing(False)
        except Exception as e:
            logger.error(f"Failed to clear syncing flag: {e}")


_orchestrator: SyncOrchestrator | None = None


def get_sync_orchestrator() -> SyncOrchestrator:
    """Get the process-wide orchestrator with the default providers."""
    global _orchestrator
    if _orchestrator is None:
        from wallsync.providers import build_default_providers

        _orchestrator = SyncOrchestrator(build_default_providers())
    return _orchestrator


async def perform_sync() -> SyncResult:
    """Run a sync through the shared orchestrator.

    Every trigger (startup, periodic job, manual request) goes through here
    so overlapping triggers collapse into one run.
    """
    return await get_sync_orchestrator().perform_sync()


async def close_sync_orchestrator() -> None:
    """Close provider HTTP clients held by the shared orchestrator."""
    global _orchestrator
    if _orchestrator is not None:
        for adapter in _orchestrator.providers:
            await adapter.close()
        _orchestrator = None
