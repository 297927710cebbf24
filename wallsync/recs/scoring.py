"""Pure scoring functions for recommendations.

Personalized score:
    0.35 * category affinity
  + 0.25 * tag similarity
  + 0.20 * popularity
  + 0.15 * freshness
  + 0.05 * diversity bonus

multiplied by 0.3 when the user already interacted with the item.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from wallsync.recs.contracts import RecommendationReason
from wallsync.timeutils import ensure_utc, utc_now

WEIGHT_CATEGORY = 0.35
WEIGHT_TAGS = 0.25
WEIGHT_POPULARITY = 0.20
WEIGHT_FRESHNESS = 0.15
WEIGHT_DIVERSITY = 0.05

INTERACTED_DAMPENING = 0.3
DIVERSITY_BONUS = 0.5
DIVERSITY_THRESHOLD = 0.1

MAX_LIKES = 1000.0
MAX_DOWNLOADS = 500.0

SIMILAR_CATEGORY_SCORE = 0.5
SIMILAR_TAG_WEIGHT = 0.5
SIMILAR_MIN_SCORE = 0.1

TREND_POPULARITY_WEIGHT = 0.6
TREND_FRESHNESS_WEIGHT = 0.4

ONE_WEEK = timedelta(days=7)


def normalize_tags(tags: Iterable[str]) -> set[str]:
    """Lower-case, trim and drop empty tags."""
    return {tag.strip().lower() for tag in tags if tag and tag.strip()}


def jaccard_similarity(tags_a: Iterable[str], tags_b: Iterable[str]) -> float:
    """Jaccard index of two tag collections after normalization.

    Returns:
        |A ∩ B| / |A ∪ B|, or 0.0 when either side is empty
    """
    set_a = normalize_tags(tags_a)
    set_b = normalize_tags(tags_b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def category_affinity(score: float | None, ceiling: float = 100.0) -> float:
    """Normalize a raw affinity score into [0, 1]."""
    if not score or ceiling <= 0:
        return 0.0
    return min(max(score / ceiling, 0.0), 1.0)


def normalized_popularity(likes: int, downloads: int) -> float:
    """Blend of likes (60%) and downloads (40%), each capped at 1."""
    like_score = min(max(likes, 0) / MAX_LIKES, 1.0)
    download_score = min(max(downloads, 0) / MAX_DOWNLOADS, 1.0)
    return like_score * 0.6 + download_score * 0.4


def freshness(created_at: datetime | None, now: datetime | None = None) -> float:
    """Step function of content age."""
    if created_at is None:
        return 0.2
    age = (now or utc_now()) - ensure_utc(created_at)
    if age < ONE_WEEK:
        return 1.0
    if age < ONE_WEEK * 2:
        return 0.8
    if age < ONE_WEEK * 4:
        return 0.5
    return 0.2


def personalized_score(
    affinity: float,
    tag_similarity: float,
    popularity: float,
    fresh: float,
    already_interacted: bool = False,
) -> tuple[float, RecommendationReason]:
    """Combine components into a score and pick the primary reason.

    The reason follows the largest weighted contribution. Ties keep the
    earlier component in the order category, tags, popularity, freshness.

    Args:
        affinity: Normalized category affinity (0-1)
        tag_similarity: Jaccard similarity with preferred tags (0-1)
        popularity: Normalized popularity (0-1)
        fresh: Freshness step value (0-1)
        already_interacted: Whether the user touched this item before

    Returns:
        (score, reason)
    """
    diversity = DIVERSITY_BONUS if affinity < DIVERSITY_THRESHOLD else 0.0

    contributions = [
        (affinity * WEIGHT_CATEGORY, RecommendationReason.POPULAR_IN_CATEGORY),
        (tag_similarity * WEIGHT_TAGS, RecommendationReason.SIMILAR_TAGS),
        (popularity * WEIGHT_POPULARITY, RecommendationReason.HIGHLY_RATED),
        (fresh * WEIGHT_FRESHNESS, RecommendationReason.NEW_IN_PREFERRED_CATEGORY),
    ]

    reason = RecommendationReason.BASED_ON_HISTORY
    best = 0.0
    for value, candidate in contributions:
        if value > best:
            best = value
            reason = candidate

    score = sum(value for value, _ in contributions) + diversity * WEIGHT_DIVERSITY
    if already_interacted:
        score *= INTERACTED_DAMPENING

    return score, reason


def similarity(
    target_category: str,
    target_tags: Iterable[str],
    candidate_category: str,
    candidate_tags: Iterable[str],
) -> float:
    """Item-to-item similarity: 0.5 for same category + 0.5 * Jaccard."""
    score = SIMILAR_CATEGORY_SCORE if target_category == candidate_category else 0.0
    return score + SIMILAR_TAG_WEIGHT * jaccard_similarity(target_tags, candidate_tags)


def trend_score(popularity: float, fresh: float) -> float:
    return TREND_POPULARITY_WEIGHT * popularity + TREND_FRESHNESS_WEIGHT * fresh


def fallback_score(likes: int, downloads: int) -> float:
    """Non-personalized ranking: likes + 2 * downloads."""
    return float(likes + 2 * downloads)
