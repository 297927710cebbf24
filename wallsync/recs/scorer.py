"""Recommendation scorer: read-only ranking over catalog and aggregates."""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wallsync.catalog.categories import normalize_category_key
from wallsync.logging import get_logger
from wallsync.recs.contracts import (
    STRONG_PREFERENCE_TYPES,
    InteractionType,
    RecommendationReason,
    RecommendedItem,
    weights_by_name,
)
from wallsync.recs.scoring import (
    SIMILAR_MIN_SCORE,
    category_affinity,
    fallback_score,
    freshness,
    jaccard_similarity,
    normalize_tags,
    normalized_popularity,
    personalized_score,
    similarity,
    trend_score,
)
from wallsync.storage import (
    AffinityRepo,
    CatalogRepo,
    InteractionsRepo,
    WeeklyStatsRepo,
    get_session_factory,
    load_tags,
)
from wallsync.storage.models import CatalogItem
from wallsync.timeutils import utc_now, week_number

logger = get_logger(__name__)

PREFERENCE_WINDOW = timedelta(days=30)
PREFERRED_CATEGORIES_LIMIT = 5


class RecommendationScorer:
    """Answers the four recommendation queries.

    Every query degrades instead of raising: personalized ranking falls
    back to popularity, the others to an empty list.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        cfg=None,
    ):
        if cfg is None:
            from wallsync.config import config as cfg

        self.session_factory = session_factory or get_session_factory()
        self.max_results = cfg.recs_max_results
        self.min_preferred_categories = cfg.recs_min_preferred_categories
        self.preferred_tags_limit = cfg.recs_preferred_tags_limit
        self.affinity_ceiling = cfg.recs_affinity_ceiling

    async def get_recommended_for_you(self) -> list[RecommendedItem]:
        """Personalized ranking, or popularity ranking on cold start.

        Returns:
            Up to ``max_results`` items with score > 0, best first
        """
        try:
            async with self.session_factory() as session:
                interactions = InteractionsRepo(session)

                since = utc_now() - PREFERENCE_WINDOW
                preferred = await interactions.get_preferred_categories(
                    since, weights_by_name(), limit=PREFERRED_CATEGORIES_LIMIT
                )
                active = [category for category, score in preferred if score > 0]
                if len(active) < self.min_preferred_categories:
                    logger.debug("Not enough data for personalization, using popular")
                    return await self._popular_fallback(session)

                affinities = await AffinityRepo(session).get_scores()
                tag_lists = await interactions.get_preferred_tags(
                    [itype.value for itype in STRONG_PREFERENCE_TYPES],
                    limit=self.preferred_tags_limit,
                )
                preferred_tags = normalize_tags(tag for tags in tag_lists for tag in tags)
                interacted = await interactions.get_interacted_item_ids()
                downloads = await interactions.count_by_item(InteractionType.DOWNLOAD.value)
                items = await CatalogRepo(session).list_items()

        except Exception as e:
            logger.exception(f"Personalized recommendations failed: {e}")
            return await self._safe_fallback()

        now = utc_now()
        scored = []
        for item in items:
            score, reason = personalized_score(
                affinity=category_affinity(affinities.get(item.category), self.affinity_ceiling),
                tag_similarity=jaccard_similarity(preferred_tags, load_tags(item.tags_json)),
                popularity=normalized_popularity(item.popularity, downloads.get(item.id, 0)),
                fresh=freshness(item.synced_at, now),
                already_interacted=item.id in interacted,
            )
            if score > 0:
                scored.append(RecommendedItem(item, score, reason))

        scored.sort(key=lambda rec: rec.score, reverse=True)
        logger.debug(f"Generated {len(scored)} personalized recommendations")
        return scored[: self.max_results]

    async def get_similar(
        self,
        item_id: str,
        category_id: str,
        tags: list[str],
        limit: int = 10,
    ) -> list[RecommendedItem]:
        """Items close to a given one by category and tags.

        Args:
            item_id: Item to exclude from results
            category_id: Category key or display name of the reference item
            tags: Tags of the reference item
            limit: Maximum results

        Returns:
            Items with similarity > 0.1, most similar first
        """
        target_category = normalize_category_key(category_id)
        try:
            async with self.session_factory() as session:
                items = await CatalogRepo(session).list_items(exclude_ids={item_id})
        except Exception as e:
            logger.exception(f"Similar items failed for {item_id}: {e}")
            return []

        scored = []
        for item in items:
            score = similarity(target_category, tags, item.category, load_tags(item.tags_json))
            if score > SIMILAR_MIN_SCORE:
                scored.append(
                    RecommendedItem(
                        item,
                        score,
                        RecommendationReason.SIMILAR_TO_FAVORITES,
                        reason_text="Similar style",
                    )
                )

        scored.sort(key=lambda rec: rec.score, reverse=True)
        return scored[:limit]

    async def get_popular_this_week(self) -> list[RecommendedItem]:
        """Items ranked by this week's popularity score.

        Falls back to the all-time popularity ranking when the current week
        has no stats yet.
        """
        try:
            async with self.session_factory() as session:
                stats = await WeeklyStatsRepo(session).list_for_week(week_number(), limit=self.max_results)
                if not stats:
                    return await self._popular_fallback(session)

                items = await CatalogRepo(session).list_items()
        except Exception as e:
            logger.exception(f"Popular this week failed: {e}")
            return await self._safe_fallback()

        by_id = {item.id: item for item in items}
        results = [
            RecommendedItem(by_id[stat.item_id], stat.popularity_score, RecommendationReason.POPULAR_THIS_WEEK)
            for stat in stats
            if stat.item_id in by_id
        ]
        logger.debug(f"Found {len(results)} popular this week")
        return results

    async def get_trending(self) -> list[RecommendedItem]:
        """Popularity and freshness blend, no personalization."""
        try:
            async with self.session_factory() as session:
                downloads = await InteractionsRepo(session).count_by_item(InteractionType.DOWNLOAD.value)
                items = await CatalogRepo(session).list_items()
        except Exception as e:
            logger.exception(f"Trending failed: {e}")
            return []

        now = utc_now()
        scored = [
            RecommendedItem(
                item,
                trend_score(
                    normalized_popularity(item.popularity, downloads.get(item.id, 0)),
                    freshness(item.synced_at, now),
                ),
                RecommendationReason.TRENDING_NOW,
            )
            for item in items
        ]
        scored.sort(key=lambda rec: rec.score, reverse=True)
        return scored[: self.max_results]

    async def _popular_fallback(self, session: AsyncSession) -> list[RecommendedItem]:
        """Rank the whole catalog by likes + 2 * downloads."""
        downloads = await InteractionsRepo(session).count_by_item(InteractionType.DOWNLOAD.value)
        items: list[CatalogItem] = await CatalogRepo(session).list_items()

        ranked = [
            RecommendedItem(
                item,
                fallback_score(item.popularity, downloads.get(item.id, 0)),
                RecommendationReason.HIGHLY_RATED,
            )
            for item in items
        ]
        ranked.sort(key=lambda rec: rec.score, reverse=True)
        return ranked[: self.max_results]

    async def _safe_fallback(self) -> list[RecommendedItem]:
        try:
            async with self.session_factory() as session:
                return await self._popular_fallback(session)
        except Exception as e:
            logger.exception(f"Popularity fallback failed: {e}")
            return []
