"""Repository for the user interaction log."""

from datetime import datetime, timezone

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallsync.storage.change_feed import ChangeFeed, get_change_feed
from wallsync.storage.json_utils import dump_tags, load_tags
from wallsync.storage.models import Interaction

TABLE = Interaction.__tablename__


class InteractionsRepo:
    """Repository for interaction log operations."""

    def __init__(self, session: AsyncSession, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self.feed = feed or get_change_feed()

    def add_interaction(
        self,
        item_id: str,
        category_id: str,
        interaction_type: str,
        duration_ms: int = 0,
        tags: list[str] | None = None,
        timestamp: datetime | None = None,
    ) -> Interaction:
        """Stage an interaction row in the current transaction (no commit).

        Args:
            item_id: Catalog item ID
            category_id: Normalized category key
            interaction_type: Interaction type name
            duration_ms: Time spent, for view-like interactions
            tags: Item tags at interaction time
            timestamp: When it happened (defaults to now)

        Returns:
            Pending Interaction instance
        """
        interaction = Interaction(
            item_id=item_id,
            category_id=category_id,
            interaction_type=interaction_type,
            timestamp=timestamp or datetime.now(timezone.utc),
            duration_ms=duration_ms,
            tags_json=dump_tags(tags),
        )
        self.session.add(interaction)
        return interaction

    async def list_recent(self, limit: int = 100) -> list[Interaction]:
        stmt = select(Interaction).order_by(Interaction.timestamp.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_item(self, item_id: str) -> list[Interaction]:
        stmt = (
            select(Interaction)
            .where(Interaction.item_id == item_id)
            .order_by(Interaction.timestamp.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_preferred_categories(
        self,
        since: datetime,
        weights: dict[str, int],
        limit: int = 5,
    ) -> list[tuple[str, int]]:
        """Sum interaction weights per category over a time window.

        Args:
            since: Only interactions after this time count
            weights: Interaction type name -> weight
            limit: Maximum categories to return

        Returns:
            (category_id, score) pairs, best first
        """
        weight_expr = case(
            *[(Interaction.interaction_type == name, weight) for name, weight in weights.items()],
            else_=0,
        )
        score = func.sum(weight_expr).label("score")
        stmt = (
            select(Interaction.category_id, score)
            .where(Interaction.timestamp > since)
            .group_by(Interaction.category_id)
            .order_by(score.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row.category_id, int(row.score or 0)) for row in result.all()]

    async def get_preferred_tags(self, types: list[str], limit: int = 50) -> list[list[str]]:
        """Get tag snapshots from the most recent interactions of the given types.

        Args:
            types: Interaction type names that signal strong preference
            limit: Number of interactions to read

        Returns:
            One tag list per interaction, newest first
        """
        stmt = (
            select(Interaction.tags_json)
            .where(
                Interaction.interaction_type.in_(types),
                Interaction.tags_json != "[]",
            )
            .order_by(Interaction.timestamp.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [load_tags(tags_json) for tags_json in result.scalars().all()]

    async def has_interacted_with(self, item_id: str) -> bool:
        stmt = select(func.count()).select_from(Interaction).where(Interaction.item_id == item_id)
        result = await self.session.execute(stmt)
        return (result.scalar() or 0) > 0

    async def get_interacted_item_ids(self) -> set[str]:
        """Get every item ID the user has interacted with."""
        result = await self.session.execute(select(Interaction.item_id).distinct())
        return set(result.scalars().all())

    async def count_by_item(self, interaction_type: str) -> dict[str, int]:
        """Count interactions of one type per item."""
        stmt = (
            select(Interaction.item_id, func.count().label("count"))
            .where(Interaction.interaction_type == interaction_type)
            .group_by(Interaction.item_id)
        )
        result = await self.session.execute(stmt)
        return {row.item_id: row.count for row in result.all()}

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete interactions recorded before the cutoff.

        Returns:
            Number of rows deleted
        """
        stmt = delete(Interaction).where(Interaction.timestamp < cutoff)
        result = await self.session.execute(stmt)
        await self.session.commit()
        deleted = result.rowcount or 0
        if deleted:
            self.feed.publish(TABLE)
        return deleted
