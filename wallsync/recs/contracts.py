"""Recommendation domain contracts."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from wallsync.storage.json_utils import load_tags
from wallsync.storage.models import CatalogItem


class InteractionType(str, Enum):
    """Kinds of user action, each carrying an affinity weight."""

    VIEW = "view"
    DETAIL_VIEW = "detail_view"
    DOWNLOAD = "download"
    SET_WALLPAPER = "set_wallpaper"
    FAVORITE = "favorite"
    SHARE = "share"
    UNFAVORITE = "unfavorite"

    @property
    def weight(self) -> int:
        return INTERACTION_WEIGHTS[self]


INTERACTION_WEIGHTS: dict[InteractionType, int] = {
    InteractionType.VIEW: 1,
    InteractionType.DETAIL_VIEW: 2,
    InteractionType.DOWNLOAD: 5,
    InteractionType.SET_WALLPAPER: 8,
    InteractionType.FAVORITE: 10,
    InteractionType.SHARE: 4,
    InteractionType.UNFAVORITE: -5,
}

# Interactions whose tags feed the preferred-tag set
STRONG_PREFERENCE_TYPES = (
    InteractionType.FAVORITE,
    InteractionType.DOWNLOAD,
    InteractionType.SET_WALLPAPER,
)


def weights_by_name() -> dict[str, int]:
    """Interaction weights keyed by stored type name."""
    return {itype.value: weight for itype, weight in INTERACTION_WEIGHTS.items()}


class RecommendationReason(str, Enum):
    """Why an item was recommended."""

    SIMILAR_TO_FAVORITES = "similar_to_favorites"
    POPULAR_IN_CATEGORY = "popular_in_category"
    TRENDING_NOW = "trending_now"
    POPULAR_THIS_WEEK = "popular_this_week"
    BASED_ON_HISTORY = "based_on_history"
    NEW_IN_PREFERRED_CATEGORY = "new_in_preferred_category"
    SIMILAR_TAGS = "similar_tags"
    HIGHLY_RATED = "highly_rated"

    @property
    def reason_text(self) -> str:
        return REASON_TEXTS[self]


REASON_TEXTS: dict[RecommendationReason, str] = {
    RecommendationReason.SIMILAR_TO_FAVORITES: "Similar to your favorites",
    RecommendationReason.POPULAR_IN_CATEGORY: "Popular in your favorite category",
    RecommendationReason.TRENDING_NOW: "📈 Trending",
    RecommendationReason.POPULAR_THIS_WEEK: "🔥 Popular this week",
    RecommendationReason.BASED_ON_HISTORY: "Based on your history",
    RecommendationReason.NEW_IN_PREFERRED_CATEGORY: "✨ New in your style",
    RecommendationReason.SIMILAR_TAGS: "Similar style",
    RecommendationReason.HIGHLY_RATED: "⭐ Highly rated",
}


@dataclass
class RecommendedItem:
    """A catalog item with its score and primary reason."""

    item: CatalogItem
    score: float
    reason: RecommendationReason
    reason_text: str = ""

    def __post_init__(self) -> None:
        if not self.reason_text:
            self.reason_text = self.reason.reason_text

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": catalog_item_to_dict(self.item),
            "score": round(self.score, 4),
            "reason": self.reason.value,
            "reason_text": self.reason_text,
        }


def catalog_item_to_dict(item: CatalogItem) -> dict[str, Any]:
    """Serialize a catalog item for API responses."""
    return {
        "id": item.id,
        "source": item.source,
        "source_id": item.source_id,
        "category": item.category,
        "thumbnail_url": item.thumbnail_url,
        "preview_url": item.preview_url,
        "full_url": item.full_url,
        "original_url": item.original_url,
        "width": item.width,
        "height": item.height,
        "color": item.color,
        "description": item.description,
        "photographer_name": item.photographer_name,
        "photographer_url": item.photographer_url,
        "source_url": item.source_url,
        "attribution_text": item.attribution_text,
        "tags": load_tags(item.tags_json),
        "popularity": item.popularity,
        "synced_at": item.synced_at.isoformat() if item.synced_at else None,
        "viewed": item.viewed,
        "local_cache_path": item.local_cache_path,
    }
