"""Tests for pure recommendation scoring functions."""

from datetime import datetime, timedelta, timezone

import pytest

from wallsync.recs import InteractionType, RecommendationReason
from wallsync.recs.scoring import (
    category_affinity,
    fallback_score,
    freshness,
    jaccard_similarity,
    normalized_popularity,
    personalized_score,
    similarity,
    trend_score,
)
from wallsync.recs.tracker import weekly_deltas

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_interaction_weights():
    assert InteractionType.VIEW.weight == 1
    assert InteractionType.DETAIL_VIEW.weight == 2
    assert InteractionType.DOWNLOAD.weight == 5
    assert InteractionType.SET_WALLPAPER.weight == 8
    assert InteractionType.FAVORITE.weight == 10
    assert InteractionType.SHARE.weight == 4
    assert InteractionType.UNFAVORITE.weight == -5


def test_jaccard_similarity():
    """Test overlap ratio and normalization of tags."""
    assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)
    assert jaccard_similarity(["Space ", "stars"], ["space", "STARS"]) == 1.0
    assert jaccard_similarity([], ["a"]) == 0.0
    assert jaccard_similarity(["a"], []) == 0.0


def test_category_affinity_is_clamped():
    assert category_affinity(None) == 0.0
    assert category_affinity(50, ceiling=100) == 0.5
    assert category_affinity(250, ceiling=100) == 1.0
    assert category_affinity(-10, ceiling=100) == 0.0


def test_normalized_popularity():
    assert normalized_popularity(0, 0) == 0.0
    assert normalized_popularity(500, 250) == pytest.approx(0.5)
    assert normalized_popularity(5000, 5000) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "age, expected",
    [
        (timedelta(days=1), 1.0),
        (timedelta(days=10), 0.8),
        (timedelta(days=20), 0.5),
        (timedelta(days=60), 0.2),
    ],
)
def test_freshness_steps(age, expected):
    assert freshness(NOW - age, NOW) == expected


def test_freshness_unknown_and_naive_dates():
    assert freshness(None, NOW) == 0.2
    naive = (NOW - timedelta(days=2)).replace(tzinfo=None)
    assert freshness(naive, NOW) == 1.0


def test_personalized_score_components():
    score, reason = personalized_score(
        affinity=1.0,
        tag_similarity=0.0,
        popularity=0.0,
        fresh=0.2,
    )

    assert score == pytest.approx(0.35 + 0.15 * 0.2)
    assert reason is RecommendationReason.POPULAR_IN_CATEGORY


def test_low_affinity_gets_diversity_bonus():
    score, _ = personalized_score(affinity=0.0, tag_similarity=0.0, popularity=0.0, fresh=0.0)
    assert score == pytest.approx(0.05 * 0.5)


def test_interacted_items_are_dampened():
    fresh_score, _ = personalized_score(0.5, 0.5, 0.5, 1.0)
    seen_score, _ = personalized_score(0.5, 0.5, 0.5, 1.0, already_interacted=True)

    assert seen_score == pytest.approx(fresh_score * 0.3)


def test_reason_follows_largest_contribution():
    _, reason = personalized_score(affinity=0.0, tag_similarity=1.0, popularity=0.5, fresh=0.2)
    assert reason is RecommendationReason.SIMILAR_TAGS

    _, reason = personalized_score(affinity=0.0, tag_similarity=0.0, popularity=1.0, fresh=1.0)
    assert reason is RecommendationReason.HIGHLY_RATED

    _, reason = personalized_score(affinity=0.0, tag_similarity=0.0, popularity=0.0, fresh=1.0)
    assert reason is RecommendationReason.NEW_IN_PREFERRED_CATEGORY

    _, reason = personalized_score(affinity=0.0, tag_similarity=0.0, popularity=0.0, fresh=0.0)
    assert reason is RecommendationReason.BASED_ON_HISTORY


def test_item_similarity():
    assert similarity("space", ["a", "b"], "space", ["a", "b"]) == 1.0
    assert similarity("space", ["a", "b"], "cars", ["b", "c"]) == pytest.approx(0.5 / 3)
    assert similarity("space", [], "space", []) == 0.5
    assert similarity("space", [], "cars", ["x"]) == 0.0


def test_trend_and_fallback_scores():
    assert trend_score(1.0, 0.5) == pytest.approx(0.8)
    assert fallback_score(10, 3) == 16.0


def test_weekly_deltas():
    assert weekly_deltas(InteractionType.VIEW) == (1, 0, 0)
    assert weekly_deltas(InteractionType.DETAIL_VIEW) == (1, 0, 0)
    assert weekly_deltas(InteractionType.DOWNLOAD) == (0, 1, 0)
    assert weekly_deltas(InteractionType.FAVORITE) == (0, 0, 1)
    assert weekly_deltas(InteractionType.SET_WALLPAPER) == (0, 0, 0)
    assert weekly_deltas(InteractionType.UNFAVORITE) == (0, 0, 0)


def test_reason_texts():
    assert RecommendationReason.POPULAR_THIS_WEEK.reason_text == "🔥 Popular this week"
    assert RecommendationReason.SIMILAR_TAGS.reason_text == "Similar style"
