"""Interaction tracking and on-device style recommendations."""

from wallsync.recs.contracts import (
    InteractionType,
    RecommendationReason,
    RecommendedItem,
    catalog_item_to_dict,
)
from wallsync.recs.scorer import RecommendationScorer
from wallsync.recs.tracker import InteractionTracker

__all__ = [
    "InteractionType",
    "RecommendationReason",
    "RecommendedItem",
    "catalog_item_to_dict",
    "InteractionTracker",
    "RecommendationScorer",
]
