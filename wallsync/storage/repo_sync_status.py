"""Repository for the singleton sync status row."""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wallsync.storage.change_feed import ChangeFeed, get_change_feed
from wallsync.storage.json_utils import dump_cursors, load_cursors
from wallsync.storage.models import SYNC_STATUS_ID, SyncStatus

TABLE = SyncStatus.__tablename__


class SyncStatusRepo:
    """Repository for sync status operations."""

    def __init__(self, session: AsyncSession, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self.feed = feed or get_change_feed()

    async def get_status(self) -> SyncStatus | None:
        stmt = select(SyncStatus).where(SyncStatus.id == SYNC_STATUS_ID)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self) -> SyncStatus:
        """Get the status row, creating it with defaults if missing."""
        stmt = sqlite_insert(SyncStatus).values(
            id=SYNC_STATUS_ID,
            last_sync_count=0,
            is_syncing=False,
            total_synced=0,
            cursors_json="{}",
        ).on_conflict_do_nothing(index_elements=["id"])
        await self.session.execute(stmt)
        await self.session.commit()

        self.session.expire_all()
        status = await self.get_status()
        return status  # type: ignore[return-value]

    async def _update(self, **values) -> None:
        stmt = update(SyncStatus).where(SyncStatus.id == SYNC_STATUS_ID).values(**values)
        await self.session.execute(stmt)
        await self.session.commit()
        self.feed.publish(TABLE)

    async def set_syncing(self, syncing: bool) -> None:
        await self._update(is_syncing=syncing)

    async def update_last_sync(
        self,
        sources: list[str],
        count: int,
        timestamp: datetime | None = None,
    ) -> None:
        """Record a successful sync run and clear any previous error.

        Args:
            sources: Providers that contributed data
            count: Number of new items inserted
            timestamp: Completion time (defaults to now)
        """
        await self._update(
            last_sync_at=timestamp or datetime.now(timezone.utc),
            last_sync_sources=",".join(sources),
            last_sync_count=count,
            is_syncing=False,
            last_error=None,
            total_synced=SyncStatus.total_synced + count,
        )

    async def set_error(self, error: str) -> None:
        await self._update(is_syncing=False, last_error=error)

    async def get_cursors(self) -> dict[str, int]:
        """Get the next page to request per provider."""
        status = await self.get_status()
        if status is None:
            return {}
        return load_cursors(status.cursors_json)

    async def update_cursors(self, cursors: dict[str, int]) -> None:
        """Merge pagination cursors into the stored set."""
        merged = await self.get_cursors()
        merged.update(cursors)
        await self._update(cursors_json=dump_cursors(merged))
