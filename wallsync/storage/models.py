"""SQLAlchemy ORM models for the wallpaper catalog and interaction aggregates."""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from wallsync.storage.db import Base

SYNC_STATUS_ID = "default"


class CatalogItem(Base):
    """Wallpaper synced from an external provider."""

    __tablename__ = "catalog_items"

    # Deterministic: "{source}_{source_id}"
    id: Mapped[str] = mapped_column(String, primary_key=True)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)

    thumbnail_url: Mapped[str] = mapped_column(String, nullable=False)
    preview_url: Mapped[str] = mapped_column(String, nullable=False)
    full_url: Mapped[str] = mapped_column(String, nullable=False)
    original_url: Mapped[str] = mapped_column(String, nullable=False)
    width: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photographer_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    photographer_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    source_url: Mapped[str] = mapped_column(String, nullable=False, default="")
    attribution_text: Mapped[str] = mapped_column(String, nullable=False, default="")

    category: Mapped[str] = mapped_column(String, nullable=False)
    search_query: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    tags_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    popularity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    synced_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    source_created_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    viewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    local_cache_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("source_id", "source", name="uq_catalog_items_source_source_id"),
        Index("ix_catalog_items_category", "category"),
        Index("ix_catalog_items_synced_at", "synced_at"),
    )


class SyncStatus(Base):
    """Singleton row describing the last sync run."""

    __tablename__ = "sync_status"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=SYNC_STATUS_ID)
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_sync_sources: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_sync_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_syncing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_synced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # {provider_name: next_page}
    cursors_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")


class Interaction(Base):
    """Append-only log of user actions on catalog items."""

    __tablename__ = "interactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    category_id: Mapped[str] = mapped_column(String, nullable=False)
    interaction_type: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    __table_args__ = (
        Index("ix_interactions_item_id", "item_id"),
        Index("ix_interactions_type", "interaction_type"),
        Index("ix_interactions_category_id", "category_id"),
        Index("ix_interactions_timestamp", "timestamp"),
    )


class CategoryAffinity(Base):
    """Accumulated preference score per category."""

    __tablename__ = "category_affinities"

    category_id: Mapped[str] = mapped_column(String, primary_key=True)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    interaction_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_interaction_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class WeeklyStat(Base):
    """Per-item counters for one week key (year * 100 + ISO week)."""

    __tablename__ = "weekly_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    favorite_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    popularity_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint("item_id", "week_number", name="uq_weekly_stats_item_week"),
        Index("ix_weekly_stats_week_score", "week_number", "popularity_score"),
    )
