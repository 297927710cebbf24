"""Repository for per-item weekly statistics."""

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wallsync.storage.models import WeeklyStat

TABLE = WeeklyStat.__tablename__

VIEW_POINTS = 1
DOWNLOAD_POINTS = 5
FAVORITE_POINTS = 10


def popularity_score(views: int, downloads: int, favorites: int) -> float:
    """Weekly popularity: views*1 + downloads*5 + favorites*10."""
    return float(views * VIEW_POINTS + downloads * DOWNLOAD_POINTS + favorites * FAVORITE_POINTS)


class WeeklyStatsRepo:
    """Repository for weekly statistic operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_stat(self, item_id: str, week: int) -> WeeklyStat | None:
        stmt = select(WeeklyStat).where(
            WeeklyStat.item_id == item_id,
            WeeklyStat.week_number == week,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def increment(
        self,
        item_id: str,
        week: int,
        views: int = 0,
        downloads: int = 0,
        favorites: int = 0,
    ) -> None:
        """Bump an item's counters for a week in one atomic upsert (no commit).

        The popularity score is recomputed from the pre-update column values
        plus the deltas, inside the same statement.

        Args:
            item_id: Catalog item ID
            week: Week key
            views: View delta
            downloads: Download delta
            favorites: Favorite delta
        """
        insert_stmt = sqlite_insert(WeeklyStat).values(
            item_id=item_id,
            week_number=week,
            view_count=views,
            download_count=downloads,
            favorite_count=favorites,
            popularity_score=popularity_score(views, downloads, favorites),
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["item_id", "week_number"],
            set_={
                "view_count": WeeklyStat.view_count + views,
                "download_count": WeeklyStat.download_count + downloads,
                "favorite_count": WeeklyStat.favorite_count + favorites,
                "popularity_score": (
                    (WeeklyStat.view_count + views) * VIEW_POINTS
                    + (WeeklyStat.download_count + downloads) * DOWNLOAD_POINTS
                    + (WeeklyStat.favorite_count + favorites) * FAVORITE_POINTS
                ),
            },
        )
        await self.session.execute(upsert_stmt)

    async def list_for_week(self, week: int, limit: int = 20) -> list[WeeklyStat]:
        """Get the most popular items of a week.

        Args:
            week: Week key
            limit: Maximum rows to return

        Returns:
            WeeklyStat rows by popularity_score descending
        """
        stmt = (
            select(WeeklyStat)
            .where(WeeklyStat.week_number == week)
            .order_by(WeeklyStat.popularity_score.desc(), WeeklyStat.item_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_before_week(self, week: int) -> int:
        """Delete stats whose week key is lower than the given one.

        Returns:
            Number of rows deleted
        """
        stmt = delete(WeeklyStat).where(WeeklyStat.week_number < week)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
