"""Interaction tracking and aggregate maintenance."""

from collections.abc import Awaitable, Callable
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallsync.catalog.categories import normalize_category_key
from wallsync.logging import get_logger
from wallsync.recs.contracts import InteractionType
from wallsync.storage import (
    AffinityRepo,
    CatalogRepo,
    ChangeFeed,
    InteractionsRepo,
    WeeklyStatsRepo,
    get_change_feed,
    get_session_factory,
    load_tags,
)
from wallsync.storage.models import CategoryAffinity, Interaction, WeeklyStat
from wallsync.timeutils import utc_now, week_number

logger = get_logger(__name__)

DownloadHook = Callable[[str], Awaitable[object]]

DOWNLOAD_TYPES = (InteractionType.DOWNLOAD, InteractionType.SET_WALLPAPER)


def weekly_deltas(interaction_type: InteractionType) -> tuple[int, int, int]:
    """(views, downloads, favorites) increments for an interaction type."""
    if interaction_type in (InteractionType.VIEW, InteractionType.DETAIL_VIEW):
        return 1, 0, 0
    if interaction_type is InteractionType.DOWNLOAD:
        return 0, 1, 0
    if interaction_type is InteractionType.FAVORITE:
        return 0, 0, 1
    return 0, 0, 0


class InteractionTracker:
    """Records user actions and keeps affinity and weekly stats in step.

    Tracking is best effort: failures are logged and never raised, so the
    user action that triggered them always goes through.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        feed: ChangeFeed | None = None,
        download_hook: DownloadHook | None = None,
    ):
        self.session_factory = session_factory or get_session_factory()
        self.feed = feed or get_change_feed()
        self.download_hook = download_hook

    async def log_interaction(
        self,
        item_id: str,
        category_id: str,
        interaction_type: InteractionType | str,
        duration_ms: int = 0,
        tags: list[str] | None = None,
    ) -> bool:
        """Append an interaction and update both aggregates in one transaction.

        Args:
            item_id: Catalog item ID
            category_id: Category key or display name
            interaction_type: InteractionType or its stored name
            duration_ms: Time spent on the item
            tags: Item tags, looked up from the catalog when omitted

        Returns:
            True if recorded, False if tracking failed
        """
        try:
            itype = InteractionType(interaction_type)
            category = normalize_category_key(category_id)
            now = utc_now()

            async with self.session_factory() as session:
                if tags is None:
                    item = await CatalogRepo(session, self.feed).get_item(item_id)
                    tags = load_tags(item.tags_json) if item else []

                InteractionsRepo(session, self.feed).add_interaction(
                    item_id=item_id,
                    category_id=category,
                    interaction_type=itype.value,
                    duration_ms=duration_ms,
                    tags=tags,
                    timestamp=now,
                )
                await AffinityRepo(session).add_delta(category, itype.weight, at=now)

                views, downloads, favorites = weekly_deltas(itype)
                if views or downloads or favorites:
                    await WeeklyStatsRepo(session).increment(
                        item_id,
                        week_number(now),
                        views=views,
                        downloads=downloads,
                        favorites=favorites,
                    )

                await session.commit()

            self.feed.publish(Interaction.__tablename__)
            self.feed.publish(CategoryAffinity.__tablename__)
            self.feed.publish(WeeklyStat.__tablename__)
            logger.debug(f"Logged interaction: {itype.value} for {item_id}")

        except Exception as e:
            logger.exception(f"Failed to log interaction for {item_id}: {e}")
            return False

        if itype in DOWNLOAD_TYPES and self.download_hook is not None:
            try:
                await self.download_hook(item_id)
            except Exception as e:
                logger.warning(f"Download hook failed for {item_id}: {e}")

        return True

    async def cleanup(
        self,
        interactions_days: int = 90,
        weekly_stats_weeks: int = 4,
    ) -> tuple[int, int]:
        """Prune old interactions and weekly stats.

        Week keys are compared directly, so ``current - weeks`` is not an
        exact calendar offset across a year boundary.

        Args:
            interactions_days: Interaction age cutoff
            weekly_stats_weeks: Weekly stat key distance to keep

        Returns:
            (deleted interactions, deleted weekly stats)
        """
        try:
            cutoff = utc_now() - timedelta(days=interactions_days)
            async with self.session_factory() as session:
                deleted_interactions = await InteractionsRepo(session, self.feed).delete_older_than(cutoff)
                deleted_stats = await WeeklyStatsRepo(session).delete_before_week(
                    week_number() - weekly_stats_weeks
                )
        except Exception as e:
            logger.exception(f"Cleanup failed: {e}")
            return 0, 0

        if deleted_stats:
            self.feed.publish(WeeklyStat.__tablename__)
        logger.info(
            f"Cleanup: deleted {deleted_interactions} interactions, "
            f"{deleted_stats} weekly stats"
        )
        return deleted_interactions, deleted_stats
