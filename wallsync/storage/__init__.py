"""Storage module for database operations."""

from wallsync.storage.change_feed import ChangeFeed, get_change_feed
from wallsync.storage.db import (
    Base,
    close_engine,
    configure_sqlite,
    create_tables,
    get_engine,
    get_session_factory,
)
from wallsync.storage.json_utils import (
    dump_cursors,
    dump_tags,
    load_cursors,
    load_tags,
    safe_json_dumps,
    safe_json_loads,
)
from wallsync.storage.models import (
    CatalogItem,
    CategoryAffinity,
    Interaction,
    SyncStatus,
    WeeklyStat,
)
from wallsync.storage.repo_affinity import AffinityRepo
from wallsync.storage.repo_catalog import CatalogRepo, catalog_item_id
from wallsync.storage.repo_interactions import InteractionsRepo
from wallsync.storage.repo_sync_status import SyncStatusRepo
from wallsync.storage.repo_weekly_stats import WeeklyStatsRepo, popularity_score

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "close_engine",
    "configure_sqlite",
    # Change notifications
    "ChangeFeed",
    "get_change_feed",
    # JSON column codecs
    "safe_json_dumps",
    "safe_json_loads",
    "load_tags",
    "dump_tags",
    "load_cursors",
    "dump_cursors",
    # Models
    "CatalogItem",
    "SyncStatus",
    "Interaction",
    "CategoryAffinity",
    "WeeklyStat",
    # Repositories
    "CatalogRepo",
    "SyncStatusRepo",
    "InteractionsRepo",
    "AffinityRepo",
    "WeeklyStatsRepo",
    # Helpers
    "catalog_item_id",
    "popularity_score",
]
