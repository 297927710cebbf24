"""Tests for recommendation queries."""

import dataclasses
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from wallsync.recs import InteractionTracker, InteractionType, RecommendationReason, RecommendationScorer


@pytest.fixture
def scorer(session_factory, test_config):
    return RecommendationScorer(session_factory=session_factory, cfg=test_config)


@pytest.fixture
def tracker(session_factory, feed):
    return InteractionTracker(session_factory=session_factory, feed=feed)


@pytest.fixture
async def catalog(seed_items, catalog_row):
    now = datetime.now(timezone.utc)
    await seed_items(
        catalog_row(source_id="s1", category="space", tags=["galaxy"], popularity=10),
        catalog_row(source_id="s2", category="space", tags=["galaxy"], popularity=10),
        catalog_row(source_id="c1", category="cars", tags=["red"], popularity=900),
        catalog_row(
            source_id="old",
            category="nature",
            tags=["forest"],
            popularity=0,
            synced_at=now - timedelta(days=60),
        ),
    )


@pytest.mark.anyio
async def test_cold_start_falls_back_to_popular(scorer, catalog):
    """With no history the ranking is likes + 2 * downloads."""
    results = await scorer.get_recommended_for_you()

    assert results
    assert results[0].item.id == "wallhaven_c1"
    assert results[0].score == 900
    assert {rec.reason for rec in results} == {RecommendationReason.HIGHLY_RATED}


@pytest.mark.anyio
async def test_only_negative_history_is_cold_start(scorer, tracker, catalog):
    await tracker.log_interaction("wallhaven_gone", "space", InteractionType.UNFAVORITE, tags=[])

    results = await scorer.get_recommended_for_you()

    assert results[0].reason is RecommendationReason.HIGHLY_RATED


@pytest.mark.anyio
async def test_downloads_count_in_fallback(scorer, tracker, seed_items, catalog_row):
    await seed_items(
        catalog_row(source_id="a", popularity=5),
        catalog_row(source_id="b", popularity=4),
    )
    # An unfavorite keeps the profile cold while adding a download to "b"
    await tracker.log_interaction("wallhaven_b", "space", InteractionType.UNFAVORITE, tags=[])
    await tracker.log_interaction("wallhaven_b", "space", InteractionType.DOWNLOAD, tags=[])

    results = await scorer.get_recommended_for_you()

    assert [rec.item.id for rec in results] == ["wallhaven_b", "wallhaven_a"]
    assert results[0].score == 6


@pytest.mark.anyio
async def test_personalized_ranking_prefers_liked_style(scorer, tracker, catalog):
    """Test a favorite in space with galaxy tags lifts matching items."""
    await tracker.log_interaction("wallhaven_gone", "space", InteractionType.FAVORITE, tags=["galaxy"])

    results = await scorer.get_recommended_for_you()

    assert {rec.item.id for rec in results[:2]} == {"wallhaven_s1", "wallhaven_s2"}
    assert results[0].reason is RecommendationReason.SIMILAR_TAGS
    assert results[0].reason_text == "Similar style"
    assert all(rec.score > 0 for rec in results)
    assert [rec.score for rec in results] == sorted((rec.score for rec in results), reverse=True)


@pytest.mark.anyio
async def test_interacted_items_rank_lower(scorer, tracker, catalog):
    await tracker.log_interaction("wallhaven_s1", "space", InteractionType.FAVORITE, tags=["galaxy"])

    results = await scorer.get_recommended_for_you()
    scores = {rec.item.id: rec.score for rec in results}

    assert scores["wallhaven_s1"] == pytest.approx(scores["wallhaven_s2"] * 0.3)


@pytest.mark.anyio
async def test_results_are_truncated(session_factory, test_config, tracker, catalog):
    scorer = RecommendationScorer(
        session_factory=session_factory,
        cfg=dataclasses.replace(test_config, recs_max_results=2),
    )
    await tracker.log_interaction("wallhaven_gone", "space", InteractionType.VIEW, tags=[])

    assert len(await scorer.get_recommended_for_you()) == 2


@pytest.mark.anyio
async def test_personalization_failure_degrades_to_popular(scorer, tracker, catalog):
    await tracker.log_interaction("wallhaven_gone", "space", InteractionType.FAVORITE, tags=["galaxy"])

    with patch("wallsync.recs.scorer.AffinityRepo.get_scores", side_effect=RuntimeError("boom")):
        results = await scorer.get_recommended_for_you()

    assert results[0].item.id == "wallhaven_c1"
    assert results[0].reason is RecommendationReason.HIGHLY_RATED


@pytest.mark.anyio
async def test_broken_storage_returns_empty(test_config):
    def broken_factory():
        raise RuntimeError("database is gone")

    scorer = RecommendationScorer(session_factory=broken_factory, cfg=test_config)

    assert await scorer.get_recommended_for_you() == []
    assert await scorer.get_similar("x", "space", ["a"]) == []
    assert await scorer.get_popular_this_week() == []
    assert await scorer.get_trending() == []


@pytest.mark.anyio
async def test_similar_items(scorer, seed_items, catalog_row):
    """Same category scores 0.5, tag overlap adds up to 0.5."""
    await seed_items(
        catalog_row(source_id="target", category="space", tags=["galaxy", "stars"]),
        catalog_row(source_id="twin", category="space", tags=["galaxy", "stars"]),
        catalog_row(source_id="cousin", category="cars", tags=["galaxy"]),
        catalog_row(source_id="stranger", category="cars", tags=["red"]),
    )

    results = await scorer.get_similar("wallhaven_target", "Space", ["galaxy", "stars"])

    assert [rec.item.id for rec in results] == ["wallhaven_twin", "wallhaven_cousin"]
    assert results[0].score == pytest.approx(1.0)
    assert results[1].score == pytest.approx(0.25)
    assert results[0].reason is RecommendationReason.SIMILAR_TO_FAVORITES
    assert results[0].reason_text == "Similar style"


@pytest.mark.anyio
async def test_similar_respects_limit(scorer, seed_items, catalog_row):
    await seed_items(*[catalog_row(source_id=str(i), category="space") for i in range(5)])

    assert len(await scorer.get_similar("wallhaven_0", "space", [], limit=2)) == 2


@pytest.mark.anyio
async def test_popular_this_week(scorer, tracker, catalog):
    """Test ranking by this week's popularity score."""
    await tracker.log_interaction("wallhaven_s1", "space", InteractionType.VIEW, tags=[])
    await tracker.log_interaction("wallhaven_c1", "cars", InteractionType.FAVORITE, tags=[])
    await tracker.log_interaction("wallhaven_gone", "cars", InteractionType.FAVORITE, tags=[])

    results = await scorer.get_popular_this_week()

    assert [rec.item.id for rec in results] == ["wallhaven_c1", "wallhaven_s1"]
    assert results[0].score == 10
    assert results[0].reason is RecommendationReason.POPULAR_THIS_WEEK


@pytest.mark.anyio
async def test_popular_this_week_falls_back_without_stats(scorer, catalog):
    results = await scorer.get_popular_this_week()

    assert results
    assert results[0].reason is RecommendationReason.HIGHLY_RATED


@pytest.mark.anyio
async def test_trending_blends_popularity_and_freshness(scorer, catalog):
    results = await scorer.get_trending()

    assert results[0].item.id == "wallhaven_c1"
    assert results[-1].item.id == "wallhaven_old"
    assert results[-1].score == pytest.approx(0.4 * 0.2)
    assert {rec.reason for rec in results} == {RecommendationReason.TRENDING_NOW}


@pytest.mark.anyio
async def test_recommended_item_serialization(scorer, catalog):
    results = await scorer.get_trending()
    data = results[0].to_dict()

    assert data["item"]["id"] == "wallhaven_c1"
    assert data["item"]["tags"] == ["red"]
    assert data["reason"] == "trending_now"
    assert data["reason_text"] == "📈 Trending"
