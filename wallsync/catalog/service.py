"""Catalog read side: lookups, listings, read-side mutations and subscriptions."""

import asyncio
from collections.abc import AsyncIterator
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallsync.catalog.categories import SyncCategory, normalize_category_key
from wallsync.logging import get_logger
from wallsync.providers.base import ProviderAdapter
from wallsync.providers.result import Ok
from wallsync.providers.unsplash import UnsplashAdapter
from wallsync.storage import (
    CatalogItem,
    CatalogRepo,
    ChangeFeed,
    SyncStatus,
    SyncStatusRepo,
    get_change_feed,
    get_session_factory,
)
from wallsync.timeutils import utc_now

logger = get_logger(__name__)

NEW_ITEMS_WINDOW = timedelta(days=7)
DEFAULT_LOOKUP_TIMEOUT = 5.0

CATALOG_TABLES = (CatalogItem.__tablename__,)
STATUS_TABLES = (SyncStatus.__tablename__,)


class CatalogService:
    """Query and lightly mutate the synced catalog."""

    def __init__(
        self,
        providers: list[ProviderAdapter] | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        feed: ChangeFeed | None = None,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
    ):
        """Initialize the service.

        Args:
            providers: Adapters used for remote lookup fallback, by source name
            session_factory: Session factory, defaults to the app database
            feed: Change feed for subscriptions
            lookup_timeout: Bound on a remote lookup, in seconds
        """
        self.providers = {adapter.name: adapter for adapter in providers or []}
        self.session_factory = session_factory or get_session_factory()
        self.feed = feed or get_change_feed()
        self.lookup_timeout = lookup_timeout

    # Lookups

    async def get_item(self, item_id: str, remote_fallback: bool = True) -> CatalogItem | None:
        """Get an item from the store, or from its provider when missing.

        A remote hit is returned as a transient CatalogItem and is not
        persisted; only sync writes catalog rows.

        Args:
            item_id: Catalog item ID ("{source}_{source_id}")
            remote_fallback: Whether to ask the provider on a local miss

        Returns:
            CatalogItem, or None if not found within the lookup timeout
        """
        async with self.session_factory() as session:
            item = await CatalogRepo(session, self.feed).get_item(item_id)
        if item is not None or not remote_fallback:
            return item
        return await self._fetch_remote(item_id)

    async def _fetch_remote(self, item_id: str) -> CatalogItem | None:
        source, _, source_id = item_id.partition("_")
        adapter = self.providers.get(source)
        if adapter is None or not source_id or not adapter.has_credentials():
            return None

        try:
            result = await asyncio.wait_for(adapter.fetch_by_id(source_id), timeout=self.lookup_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Remote lookup for {item_id} timed out after {self.lookup_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"Remote lookup for {item_id} failed: {e}")
            return None

        if not isinstance(result, Ok) or result.value is None:
            return None

        try:
            # Category is unknown for a remote-only item
            record = adapter.to_record(result.value, SyncCategory.NEW)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Remote lookup for {item_id} returned a malformed record: {e}")
            return None

        return CatalogItem(**record.to_row(utc_now()), viewed=False)

    # Listings

    async def list_all(self, limit: int | None = None) -> list[CatalogItem]:
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).list_items(limit=limit)

    async def list_by_category(self, category: str, limit: int | None = None) -> list[CatalogItem]:
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).list_items(
                category=normalize_category_key(category), limit=limit
            )

    async def list_new(self, limit: int | None = None) -> list[CatalogItem]:
        """Items synced in the last seven days."""
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).list_items(
                synced_since=utc_now() - NEW_ITEMS_WINDOW, limit=limit
            )

    async def search(self, query: str, limit: int = 100) -> list[CatalogItem]:
        query = query.strip()
        if not query:
            return []
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).search(query, limit=limit)

    async def count(self, source: str | None = None, category: str | None = None) -> int:
        if category:
            category = normalize_category_key(category)
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).count_items(source=source, category=category)

    async def count_unviewed(self) -> int:
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).count_unviewed()

    async def get_sync_status(self) -> SyncStatus | None:
        async with self.session_factory() as session:
            return await SyncStatusRepo(session, self.feed).get_status()

    # Read-side mutations

    async def mark_viewed(self, item_id: str) -> bool:
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).mark_as_viewed(item_id)

    async def set_cache_path(self, item_id: str, path: str | None) -> bool:
        async with self.session_factory() as session:
            return await CatalogRepo(session, self.feed).update_cache_path(item_id, path)

    async def clear_all(self) -> int:
        async with self.session_factory() as session:
            deleted = await CatalogRepo(session, self.feed).clear_all()
        logger.info(f"Cleared {deleted} catalog items")
        return deleted

    async def track_download(self, item_id: str) -> bool:
        """Ping the provider's download endpoint where its terms require it.

        Only Unsplash asks for this. Never raises.
        """
        source, _, source_id = item_id.partition("_")
        adapter = self.providers.get(source)
        if not isinstance(adapter, UnsplashAdapter) or not source_id:
            return False
        try:
            return await adapter.track_download(source_id)
        except Exception as e:
            logger.error(f"Failed to track download for {item_id}: {e}")
            return False

    # Subscriptions

    def observe_all(self, limit: int | None = None) -> AsyncIterator[list[CatalogItem]]:
        """Stream the full listing, re-emitted after every catalog write."""

        async def query(session: AsyncSession) -> list[CatalogItem]:
            return await CatalogRepo(session, self.feed).list_items(limit=limit)

        return self.feed.observe(self.session_factory, CATALOG_TABLES, query)

    def observe_category(self, category: str, limit: int | None = None) -> AsyncIterator[list[CatalogItem]]:
        key = normalize_category_key(category)

        async def query(session: AsyncSession) -> list[CatalogItem]:
            return await CatalogRepo(session, self.feed).list_items(category=key, limit=limit)

        return self.feed.observe(self.session_factory, CATALOG_TABLES, query)

    def observe_new(self, limit: int | None = None) -> AsyncIterator[list[CatalogItem]]:
        async def query(session: AsyncSession) -> list[CatalogItem]:
            return await CatalogRepo(session, self.feed).list_items(
                synced_since=utc_now() - NEW_ITEMS_WINDOW, limit=limit
            )

        return self.feed.observe(self.session_factory, CATALOG_TABLES, query)

    def observe_unviewed_count(self) -> AsyncIterator[int]:
        async def query(session: AsyncSession) -> int:
            return await CatalogRepo(session, self.feed).count_unviewed()

        return self.feed.observe(self.session_factory, CATALOG_TABLES, query)

    def observe_sync_status(self) -> AsyncIterator[SyncStatus | None]:
        async def query(session: AsyncSession) -> SyncStatus | None:
            return await SyncStatusRepo(session, self.feed).get_status()

        return self.feed.observe(self.session_factory, STATUS_TABLES, query)
