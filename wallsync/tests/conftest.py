"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_wallsync.db"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["SYNC_ENABLED"] = "false"
os.environ["SYNC_ON_STARTUP"] = "false"
os.environ["UNSPLASH_ACCESS_KEY"] = ""
os.environ["PEXELS_API_KEY"] = ""

import dataclasses
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wallsync.config import config
from wallsync.storage import Base, CatalogRepo, ChangeFeed, configure_sqlite


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    """Create a per-test SQLite database engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test_wallsync.db'}",
        echo=False,
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def test_config():
    """Config with pauses and backoff delays zeroed."""
    return dataclasses.replace(
        config,
        sync_provider_delay_seconds=0.0,
        sync_request_delay_seconds=0.0,
        retry_base_delay=0.0,
    )


def _catalog_row(
    source: str = "wallhaven",
    source_id: str = "1",
    category: str = "space",
    tags: list[str] | None = None,
    popularity: int = 0,
    synced_at: datetime | None = None,
    local_cache_path: str | None = None,
    **extra,
) -> dict:
    import json

    row = {
        "id": f"{source}_{source_id}",
        "source_id": source_id,
        "source": source,
        "thumbnail_url": f"https://img.test/{source}/{source_id}/thumb.jpg",
        "preview_url": f"https://img.test/{source}/{source_id}/preview.jpg",
        "full_url": f"https://img.test/{source}/{source_id}/full.jpg",
        "original_url": f"https://img.test/{source}/{source_id}/original.jpg",
        "width": 1080,
        "height": 1920,
        "description": f"{category} wallpaper {source_id}",
        "photographer_name": "Tester",
        "source_url": f"https://{source}.test/{source_id}",
        "attribution_text": "From Tests",
        "category": category,
        "tags_json": json.dumps(tags or []),
        "popularity": popularity,
        "synced_at": synced_at or datetime.now(timezone.utc),
        "local_cache_path": local_cache_path,
    }
    row.update(extra)
    return row


@pytest.fixture
def catalog_row():
    """Builder for CatalogItem column dicts."""
    return _catalog_row


@pytest.fixture
def seed_items(session_factory, feed):
    """Insert catalog rows and return the number inserted."""

    async def _seed(*rows: dict) -> int:
        async with session_factory() as session:
            return await CatalogRepo(session, feed).insert_ignore_on_conflict(list(rows))

    return _seed
