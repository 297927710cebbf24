"""Tests for storage layer."""

from datetime import datetime, timedelta, timezone

import pytest

from wallsync.storage import (
    AffinityRepo,
    CatalogRepo,
    InteractionsRepo,
    SyncStatusRepo,
    WeeklyStatsRepo,
    dump_tags,
    load_cursors,
    load_tags,
    popularity_score,
    safe_json_loads,
)


@pytest.mark.anyio
async def test_insert_ignore_on_conflict_is_idempotent(session, feed, catalog_row):
    """Inserting the same rows twice only stores them once."""
    repo = CatalogRepo(session, feed)
    rows = [catalog_row(source_id="1"), catalog_row(source_id="2")]

    assert await repo.insert_ignore_on_conflict(rows) == 2
    assert await repo.insert_ignore_on_conflict(rows) == 0
    assert await repo.count_items() == 2


@pytest.mark.anyio
async def test_insert_ignores_source_pair_conflict(session, feed, catalog_row):
    """A different id with the same (source, source_id) is still a duplicate."""
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict([catalog_row(source_id="7")])

    clash = catalog_row(source_id="7", id="something_else")
    assert await repo.insert_ignore_on_conflict([clash]) == 0
    assert await repo.get_item("something_else") is None


@pytest.mark.anyio
async def test_insert_fills_defaults_and_skips_incomplete_rows(session, feed, catalog_row):
    """Missing optional text falls back to its default; rows missing a url are dropped."""
    repo = CatalogRepo(session, feed)
    rows = [
        catalog_row(source_id="1", source_url=None, photographer_name=None, attribution_text=None),
        catalog_row(source_id="2", full_url=None),
        catalog_row(source_id="3"),
    ]

    assert await repo.insert_ignore_on_conflict(rows) == 2
    assert await repo.get_all_keys() == {"wallhaven_1", "wallhaven_3"}

    item = await repo.get_item("wallhaven_1")
    assert (item.source_url, item.photographer_name, item.attribution_text) == ("", "", "")


@pytest.mark.anyio
async def test_get_all_keys_and_exists(session, feed, catalog_row):
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict(
        [catalog_row(source="picsum", source_id="10"), catalog_row(source="wallhaven", source_id="ab")]
    )

    assert await repo.get_all_keys() == {"picsum_10", "wallhaven_ab"}
    assert await repo.exists_by_key("picsum", "10")
    assert not await repo.exists_by_key("picsum", "11")


@pytest.mark.anyio
async def test_list_items_filters(session, feed, catalog_row):
    """Test category, source and recency filters."""
    now = datetime.now(timezone.utc)
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict(
        [
            catalog_row(source_id="1", category="space", synced_at=now - timedelta(days=10)),
            catalog_row(source_id="2", category="space", synced_at=now - timedelta(days=1)),
            catalog_row(source="picsum", source_id="3", category="nature", synced_at=now),
        ]
    )

    space = await repo.list_items(category="space")
    assert [item.id for item in space] == ["wallhaven_2", "wallhaven_1"]

    picsum = await repo.list_items(source="picsum")
    assert [item.id for item in picsum] == ["picsum_3"]

    recent = await repo.list_items(synced_since=now - timedelta(days=7))
    assert {item.id for item in recent} == {"wallhaven_2", "picsum_3"}

    excluded = await repo.list_items(exclude_ids={"wallhaven_1"}, limit=1)
    assert [item.id for item in excluded] == ["picsum_3"]


@pytest.mark.anyio
async def test_search_matches_description_tags_and_photographer(session, feed, catalog_row):
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict(
        [
            catalog_row(source_id="1", description="Purple nebula", tags=["stars"]),
            catalog_row(source_id="2", description="Forest", tags=["Galaxy"]),
            catalog_row(source_id="3", description="Road", photographer_name="Jane Galaxy"),
            catalog_row(source_id="4", description="Car"),
        ]
    )

    assert {item.id for item in await repo.search("galaxy")} == {"wallhaven_2", "wallhaven_3"}
    assert [item.id for item in await repo.search("NEBULA")] == ["wallhaven_1"]


@pytest.mark.anyio
async def test_retention_sweep_keeps_cached_items(session, feed, catalog_row):
    """Old cached items survive the sweep; old uncached ones do not."""
    now = datetime.now(timezone.utc)
    old = now - timedelta(days=45)
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict(
        [
            catalog_row(source_id="old", synced_at=old),
            catalog_row(source_id="cached", synced_at=old, local_cache_path="/cache/cached.jpg"),
            catalog_row(source_id="fresh", synced_at=now),
        ]
    )

    deleted = await repo.delete_older_than(now - timedelta(days=30), exclude_cached=True)

    assert deleted == 1
    assert await repo.get_all_keys() == {"wallhaven_cached", "wallhaven_fresh"}


@pytest.mark.anyio
async def test_mark_viewed_and_cache_path(session, feed, catalog_row):
    repo = CatalogRepo(session, feed)
    await repo.insert_ignore_on_conflict([catalog_row(source_id="1"), catalog_row(source_id="2")])

    assert await repo.count_unviewed() == 2
    assert await repo.mark_as_viewed("wallhaven_1") is True
    assert await repo.mark_as_viewed("missing") is False
    assert await repo.count_unviewed() == 1

    assert await repo.update_cache_path("wallhaven_2", "/cache/2.jpg") is True
    session.expire_all()
    item = await repo.get_item("wallhaven_2")
    assert item.local_cache_path == "/cache/2.jpg"


@pytest.mark.anyio
async def test_sync_status_lifecycle(session, feed):
    """Test status creation, success bookkeeping and errors."""
    repo = SyncStatusRepo(session, feed)

    status = await repo.get_or_create()
    assert status.is_syncing is False
    assert status.total_synced == 0

    await repo.set_syncing(True)
    await repo.update_last_sync(["wallhaven", "picsum"], 12)
    await repo.update_last_sync(["wallhaven"], 3)

    session.expire_all()
    status = await repo.get_status()
    assert status.is_syncing is False
    assert status.last_sync_sources == "wallhaven"
    assert status.last_sync_count == 3
    assert status.total_synced == 15
    assert status.last_sync_at is not None
    assert status.last_error is None

    await repo.set_syncing(True)
    await repo.set_error("All sources failed")
    session.expire_all()
    status = await repo.get_status()
    assert status.is_syncing is False
    assert status.last_error == "All sources failed"


@pytest.mark.anyio
async def test_sync_status_get_or_create_is_idempotent(session, feed):
    repo = SyncStatusRepo(session, feed)
    await repo.get_or_create()
    await repo.update_last_sync(["picsum"], 4)

    status = await repo.get_or_create()
    assert status.total_synced == 4


@pytest.mark.anyio
async def test_cursors_merge(session, feed):
    repo = SyncStatusRepo(session, feed)
    assert await repo.get_cursors() == {}

    await repo.get_or_create()
    await repo.update_cursors({"unsplash": 2})
    await repo.update_cursors({"pexels": 3})
    await repo.update_cursors({"unsplash": 4})

    session.expire_all()
    assert await repo.get_cursors() == {"unsplash": 4, "pexels": 3}


@pytest.mark.anyio
async def test_affinity_accumulates(session):
    """VIEW then FAVORITE on one category gives 1 + 10."""
    repo = AffinityRepo(session)

    await repo.add_delta("space", 1)
    await repo.add_delta("space", 10)
    await repo.add_delta("cars", -5)
    await session.commit()

    affinity = await repo.get_affinity("space")
    assert affinity.score == 11
    assert affinity.interaction_count == 2
    assert await repo.get_scores() == {"space": 11, "cars": -5}
    assert [a.category_id for a in await repo.list_top(limit=1)] == ["space"]


def test_popularity_score_formula():
    assert popularity_score(3, 1, 1) == 18.0
    assert popularity_score(0, 0, 0) == 0.0


@pytest.mark.anyio
async def test_weekly_stats_increment(session):
    """3 views + 1 download + 1 favorite in a week scores 18."""
    repo = WeeklyStatsRepo(session)

    for _ in range(3):
        await repo.increment("wallhaven_1", 202642, views=1)
    await repo.increment("wallhaven_1", 202642, downloads=1)
    await repo.increment("wallhaven_1", 202642, favorites=1)
    await session.commit()

    stat = await repo.get_stat("wallhaven_1", 202642)
    assert stat.view_count == 3
    assert stat.download_count == 1
    assert stat.favorite_count == 1
    assert stat.popularity_score == 18


@pytest.mark.anyio
async def test_weekly_stats_list_and_delete(session):
    repo = WeeklyStatsRepo(session)
    await repo.increment("a", 202640, views=1)
    await repo.increment("b", 202642, favorites=1)
    await repo.increment("c", 202642, views=2)
    await session.commit()

    top = await repo.list_for_week(202642)
    assert [stat.item_id for stat in top] == ["b", "c"]

    assert await repo.delete_before_week(202642) == 1
    assert await repo.list_for_week(202640) == []


@pytest.mark.anyio
async def test_preferred_categories_and_tags(session, feed):
    """Test windowed category scores and strong-preference tag lists."""
    now = datetime.now(timezone.utc)
    repo = InteractionsRepo(session, feed)
    weights = {"view": 1, "favorite": 10, "unfavorite": -5}

    repo.add_interaction("x_1", "space", "favorite", tags=["galaxy", "stars"], timestamp=now)
    repo.add_interaction("x_2", "space", "view", timestamp=now)
    repo.add_interaction("x_3", "cars", "view", tags=["red"], timestamp=now)
    repo.add_interaction("x_4", "cars", "unfavorite", timestamp=now)
    repo.add_interaction("x_5", "city", "favorite", timestamp=now - timedelta(days=40))
    await session.commit()

    preferred = await repo.get_preferred_categories(now - timedelta(days=30), weights)
    assert preferred == [("space", 11), ("cars", -4)]

    tags = await repo.get_preferred_tags(["favorite", "download"])
    assert tags == [["galaxy", "stars"]]

    assert await repo.has_interacted_with("x_3")
    assert await repo.get_interacted_item_ids() == {"x_1", "x_2", "x_3", "x_4", "x_5"}
    assert await repo.count_by_item("view") == {"x_2": 1, "x_3": 1}

    assert await repo.delete_older_than(now - timedelta(days=30)) == 1


def test_safe_json_helpers():
    assert load_tags('["a", 1, "b"]') == ["a", "b"]
    assert load_tags("not json") == []
    assert load_tags('{"a": 1}') == []
    assert safe_json_loads(None) == {}


def test_tag_and_cursor_codecs():
    assert dump_tags([" galaxy", "stars", "galaxy", "", 3]) == '["galaxy","stars"]'
    assert dump_tags(None) == "[]"
    assert load_cursors('{"pexels": 3, "picsum": 0, "unsplash": "2", "wallhaven": true}') == {"pexels": 3}
    assert load_cursors("[1, 2]") == {}
