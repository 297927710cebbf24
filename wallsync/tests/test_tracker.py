"""Tests for interaction tracking."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from wallsync.recs import InteractionTracker, InteractionType
from wallsync.storage import AffinityRepo, InteractionsRepo, WeeklyStatsRepo, load_tags
from wallsync.timeutils import week_number


@pytest.fixture
def tracker(session_factory, feed):
    return InteractionTracker(session_factory=session_factory, feed=feed)


@pytest.mark.anyio
async def test_view_then_favorite_affinity(tracker, session_factory):
    """Test affinity accumulates interaction weights per category."""
    assert await tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW)
    assert await tracker.log_interaction("wallhaven_1", "space", InteractionType.FAVORITE)

    async with session_factory() as session:
        affinity = await AffinityRepo(session).get_affinity("space")

    assert affinity.score == 11
    assert affinity.interaction_count == 2


@pytest.mark.anyio
async def test_display_name_and_key_share_affinity(tracker, session_factory):
    await tracker.log_interaction("a", "Mountains", "view")
    await tracker.log_interaction("b", "mountain", "download")
    await tracker.log_interaction("c", "MOUNTAIN", "detail_view")

    async with session_factory() as session:
        scores = await AffinityRepo(session).get_scores()

    assert scores == {"mountain": 8}


@pytest.mark.anyio
async def test_weekly_stats_score(tracker, session_factory):
    """3 views, 1 download and 1 favorite score 18 this week."""
    for _ in range(3):
        await tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW)
    await tracker.log_interaction("wallhaven_1", "space", InteractionType.DOWNLOAD)
    await tracker.log_interaction("wallhaven_1", "space", InteractionType.FAVORITE)

    async with session_factory() as session:
        stat = await WeeklyStatsRepo(session).get_stat("wallhaven_1", week_number())

    assert (stat.view_count, stat.download_count, stat.favorite_count) == (3, 1, 1)
    assert stat.popularity_score == 18


@pytest.mark.anyio
async def test_share_and_unfavorite_touch_only_affinity(tracker, session_factory):
    await tracker.log_interaction("wallhaven_1", "cars", InteractionType.SHARE)
    await tracker.log_interaction("wallhaven_1", "cars", InteractionType.UNFAVORITE)

    async with session_factory() as session:
        stat = await WeeklyStatsRepo(session).get_stat("wallhaven_1", week_number())
        affinity = await AffinityRepo(session).get_affinity("cars")

    assert stat is None
    assert affinity.score == -1


@pytest.mark.anyio
async def test_tags_are_snapshotted_from_catalog(tracker, session_factory, seed_items, catalog_row):
    await seed_items(catalog_row(source_id="1", tags=["galaxy", "stars"]))

    await tracker.log_interaction("wallhaven_1", "space", InteractionType.FAVORITE)
    await tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW, tags=["override"])

    async with session_factory() as session:
        interactions = await InteractionsRepo(session).list_for_item("wallhaven_1")

    assert sorted(load_tags(i.tags_json) for i in interactions) == [["galaxy", "stars"], ["override"]]


@pytest.mark.anyio
async def test_invalid_interaction_type_is_not_recorded(tracker, session_factory):
    assert await tracker.log_interaction("wallhaven_1", "space", "like") is False

    async with session_factory() as session:
        assert await InteractionsRepo(session).list_recent() == []


@pytest.mark.anyio
async def test_storage_failure_returns_false(feed):
    """Tracking swallows storage errors instead of failing the user action."""

    def broken_factory():
        raise RuntimeError("database is gone")

    tracker = InteractionTracker(session_factory=broken_factory, feed=feed)

    assert await tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW) is False


@pytest.mark.anyio
async def test_download_hook_called_for_downloads(session_factory, feed):
    hook = AsyncMock(return_value=True)
    tracker = InteractionTracker(session_factory=session_factory, feed=feed, download_hook=hook)

    await tracker.log_interaction("unsplash_abc", "dark", InteractionType.VIEW, tags=[])
    await tracker.log_interaction("unsplash_abc", "dark", InteractionType.DOWNLOAD, tags=[])
    await tracker.log_interaction("unsplash_abc", "dark", InteractionType.SET_WALLPAPER, tags=[])

    assert hook.await_count == 2
    hook.assert_awaited_with("unsplash_abc")


@pytest.mark.anyio
async def test_download_hook_failure_does_not_fail_tracking(session_factory, feed):
    hook = AsyncMock(side_effect=RuntimeError("network down"))
    tracker = InteractionTracker(session_factory=session_factory, feed=feed, download_hook=hook)

    assert await tracker.log_interaction("unsplash_abc", "dark", InteractionType.DOWNLOAD, tags=[]) is True


@pytest.mark.anyio
async def test_concurrent_interactions_lose_no_updates(tracker, session_factory):
    """Parallel writers to one category and item keep every increment."""
    await asyncio.gather(
        *[
            tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW, tags=[])
            for _ in range(10)
        ]
    )

    async with session_factory() as session:
        affinity = await AffinityRepo(session).get_affinity("space")
        stat = await WeeklyStatsRepo(session).get_stat("wallhaven_1", week_number())

    assert affinity.score == 10
    assert affinity.interaction_count == 10
    assert stat.view_count == 10


@pytest.mark.anyio
async def test_interaction_publishes_changes(tracker, feed):
    async with feed.subscribe("interactions", "category_affinities") as queue:
        await tracker.log_interaction("wallhaven_1", "space", InteractionType.VIEW, tags=[])

        assert not queue.empty()


@pytest.mark.anyio
async def test_cleanup_removes_old_rows(tracker, session_factory):
    old = datetime.now(timezone.utc) - timedelta(days=120)
    async with session_factory() as session:
        InteractionsRepo(session).add_interaction("a", "space", "view", timestamp=old)
        InteractionsRepo(session).add_interaction("b", "space", "view")
        await WeeklyStatsRepo(session).increment("a", week_number() - 10, views=1)
        await WeeklyStatsRepo(session).increment("b", week_number(), views=1)
        await session.commit()

    deleted = await tracker.cleanup(interactions_days=90, weekly_stats_weeks=4)

    assert deleted == (1, 1)
    async with session_factory() as session:
        remaining = await InteractionsRepo(session).list_recent()
    assert [i.item_id for i in remaining] == ["b"]
