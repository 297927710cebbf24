"""Repository for synced catalog item operations."""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wallsync.logging import get_logger
from wallsync.storage.change_feed import ChangeFeed, get_change_feed
from wallsync.storage.models import CatalogItem

logger = get_logger(__name__)

TABLE = CatalogItem.__tablename__


def catalog_item_id(source: str, source_id: str) -> str:
    """Build the stable catalog id for a provider item."""
    return f"{source}_{source_id}"


def _complete_row(row: dict[str, Any]) -> dict[str, Any] | None:
    """Fill NOT NULL columns that have a scalar default, or None if one has no value.

    An explicit None bypasses the column default, so it is replaced here.
    """
    completed = dict(row)
    for column in CatalogItem.__table__.columns:
        if column.nullable or completed.get(column.name) is not None:
            continue
        if column.default is not None and column.default.is_scalar:
            completed[column.name] = column.default.arg
        else:
            return None
    return completed


class CatalogRepo:
    """Repository for catalog item operations."""

    def __init__(self, session: AsyncSession, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self.feed = feed or get_change_feed()

    async def get_item(self, item_id: str) -> CatalogItem | None:
        """Get item by ID.

        Args:
            item_id: Catalog item ID

        Returns:
            CatalogItem instance or None
        """
        stmt = select(CatalogItem).where(CatalogItem.id == item_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_key(self, source: str, source_id: str) -> bool:
        """Check whether a provider item is already stored."""
        stmt = select(func.count()).select_from(CatalogItem).where(
            CatalogItem.source == source,
            CatalogItem.source_id == source_id,
        )
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def get_all_keys(self) -> set[str]:
        """Get the IDs of every stored item (bulk dedup snapshot)."""
        result = await self.session.execute(select(CatalogItem.id))
        return set(result.scalars().all())

    async def insert_ignore_on_conflict(self, rows: Sequence[dict[str, Any]]) -> int:
        """Insert items, silently skipping any that already exist.

        A row conflicts when either its ID or its (source, source_id) pair is
        already present.

        Args:
            rows: Column dicts for CatalogItem

        Returns:
            Number of rows actually inserted
        """
        if not rows:
            return 0

        inserted = 0
        for row in rows:
            completed = _complete_row(row)
            if completed is None:
                logger.warning(f"Skipping incomplete catalog row {row.get('id')!r}")
                continue
            stmt = sqlite_insert(CatalogItem).values(**completed).on_conflict_do_nothing()
            result = await self.session.execute(stmt)
            inserted += max(result.rowcount or 0, 0)

        await self.session.commit()
        if inserted:
            self.feed.publish(TABLE)
        return inserted

    async def list_items(
        self,
        category: str | None = None,
        source: str | None = None,
        synced_since: datetime | None = None,
        exclude_ids: set[str] | None = None,
        limit: int | None = None,
    ) -> list[CatalogItem]:
        """List catalog items, newest first.

        Args:
            category: Filter by normalized category key
            source: Filter by provider name
            synced_since: Only items synced after this time
            exclude_ids: Item IDs to leave out
            limit: Maximum items to return (None for all)

        Returns:
            List of matching items
        """
        stmt = select(CatalogItem)

        if category:
            stmt = stmt.where(CatalogItem.category == category)

        if source:
            stmt = stmt.where(CatalogItem.source == source)

        if synced_since is not None:
            stmt = stmt.where(CatalogItem.synced_at > synced_since)

        if exclude_ids:
            stmt = stmt.where(CatalogItem.id.notin_(exclude_ids))

        stmt = stmt.order_by(CatalogItem.synced_at.desc(), CatalogItem.id)

        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, query: str, limit: int = 100) -> list[CatalogItem]:
        """Search description, tags and photographer name."""
        pattern = f"%{query}%"
        stmt = (
            select(CatalogItem)
            .where(
                or_(
                    CatalogItem.description.ilike(pattern),
                    CatalogItem.tags_json.ilike(pattern),
                    CatalogItem.photographer_name.ilike(pattern),
                )
            )
            .order_by(CatalogItem.synced_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_items(self, source: str | None = None, category: str | None = None) -> int:
        """Count stored items.

        Args:
            source: Optional provider filter
            category: Optional category filter

        Returns:
            Item count
        """
        stmt = select(func.count()).select_from(CatalogItem)

        if source:
            stmt = stmt.where(CatalogItem.source == source)

        if category:
            stmt = stmt.where(CatalogItem.category == category)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_unviewed(self) -> int:
        stmt = select(func.count()).select_from(CatalogItem).where(CatalogItem.viewed.is_(False))
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def mark_as_viewed(self, item_id: str) -> bool:
        """Flag an item as seen by the user.

        Returns:
            True if updated, False if not found
        """
        stmt = update(CatalogItem).where(CatalogItem.id == item_id).values(viewed=True)
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount:
            self.feed.publish(TABLE)
        return result.rowcount > 0

    async def update_cache_path(self, item_id: str, path: str | None) -> bool:
        """Record (or clear) the local file an item is cached at.

        Returns:
            True if updated, False if not found
        """
        stmt = update(CatalogItem).where(CatalogItem.id == item_id).values(local_cache_path=path)
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount:
            self.feed.publish(TABLE)
        return result.rowcount > 0

    async def delete_older_than(self, cutoff: datetime, exclude_cached: bool = True) -> int:
        """Delete items synced before the cutoff.

        Args:
            cutoff: Items with synced_at earlier than this are removed
            exclude_cached: Keep anything that has a local cache path

        Returns:
            Number of rows deleted
        """
        stmt = delete(CatalogItem).where(CatalogItem.synced_at < cutoff)
        if exclude_cached:
            stmt = stmt.where(CatalogItem.local_cache_path.is_(None))

        result = await self.session.execute(stmt)
        await self.session.commit()
        deleted = result.rowcount or 0
        if deleted:
            self.feed.publish(TABLE)
        return deleted

    async def clear_all(self) -> int:
        result = await self.session.execute(delete(CatalogItem))
        await self.session.commit()
        self.feed.publish(TABLE)
        return result.rowcount or 0
