"""Repository for per-category affinity aggregates."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wallsync.storage.models import CategoryAffinity

TABLE = CategoryAffinity.__tablename__


class AffinityRepo:
    """Repository for category affinity operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_affinity(self, category_id: str) -> CategoryAffinity | None:
        stmt = select(CategoryAffinity).where(CategoryAffinity.category_id == category_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_scores(self) -> dict[str, float]:
        """Get every category's score.

        Returns:
            Dictionary of category_id -> score
        """
        stmt = select(CategoryAffinity.category_id, CategoryAffinity.score)
        result = await self.session.execute(stmt)
        return {row.category_id: row.score for row in result.all()}

    async def list_top(self, limit: int = 10) -> list[CategoryAffinity]:
        stmt = select(CategoryAffinity).order_by(CategoryAffinity.score.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add_delta(
        self,
        category_id: str,
        delta: float,
        at: datetime | None = None,
    ) -> None:
        """Add a weight to a category in a single atomic upsert (no commit).

        The increment happens inside SQL, so concurrent writers never lose
        an update.

        Args:
            category_id: Normalized category key
            delta: Interaction weight (can be negative)
            at: Interaction time (defaults to now)
        """
        now = at or datetime.now(timezone.utc)

        insert_stmt = sqlite_insert(CategoryAffinity).values(
            category_id=category_id,
            score=delta,
            interaction_count=1,
            last_interaction_at=now,
        )
        upsert_stmt = insert_stmt.on_conflict_do_update(
            index_elements=["category_id"],
            set_={
                "score": CategoryAffinity.score + delta,
                "interaction_count": CategoryAffinity.interaction_count + 1,
                "last_interaction_at": now,
            },
        )
        await self.session.execute(upsert_stmt)
