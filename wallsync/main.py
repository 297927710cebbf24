"""Application entrypoint: HTTP API over catalog sync and recommendations."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from wallsync.catalog.service import CatalogService
from wallsync.config import config
from wallsync.jobs import next_sync_at, setup_all_jobs, shutdown_scheduler, start_scheduler
from wallsync.logging import get_logger, setup_logging
from wallsync.recs import (
    InteractionTracker,
    InteractionType,
    RecommendationScorer,
    RecommendedItem,
    catalog_item_to_dict,
)
from wallsync.storage import close_engine, create_tables, load_tags
from wallsync.sync import SyncError, close_sync_orchestrator, get_sync_orchestrator, perform_sync

setup_logging(config.log_level)
logger = get_logger(__name__)

_catalog_service: CatalogService | None = None
_tracker: InteractionTracker | None = None
_scorer: RecommendationScorer | None = None


def get_catalog_service() -> CatalogService:
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService(
            providers=get_sync_orchestrator().providers,
            lookup_timeout=config.lookup_timeout_seconds,
        )
    return _catalog_service


def get_tracker() -> InteractionTracker:
    global _tracker
    if _tracker is None:
        _tracker = InteractionTracker(download_hook=get_catalog_service().track_download)
    return _tracker


def get_scorer() -> RecommendationScorer:
    global _scorer
    if _scorer is None:
        _scorer = RecommendationScorer()
    return _scorer


async def verify_admin_token(
    authorization: str | None = Header(None, alias="Authorization"),
) -> None:
    """Verify admin token for protected endpoints.

    Args:
        authorization: Authorization header value

    Raises:
        HTTPException: If token is invalid or missing
    """
    if not config.admin_token:
        raise HTTPException(
            status_code=503,
            detail="Admin endpoints not configured (ADMIN_TOKEN not set)",
        )

    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    # Support "Bearer <token>" or just "<token>"
    token = authorization
    if authorization.startswith("Bearer "):
        token = authorization[7:]

    if token != config.admin_token:
        raise HTTPException(status_code=403, detail="Invalid admin token")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application")

    await create_tables()
    logger.info("Database tables ensured")

    # Periodic sync (first run immediately when SYNC_ON_STARTUP) + maintenance
    start_scheduler()
    setup_all_jobs()

    yield

    logger.info("Shutting down application")
    shutdown_scheduler()
    await close_sync_orchestrator()
    await close_engine()


app = FastAPI(
    title="Wallsync",
    version="0.1.0",
    lifespan=lifespan,
)


class InteractionPayload(BaseModel):
    """A user action on a catalog item."""

    item_id: str
    category_id: str
    interaction_type: InteractionType
    duration_ms: int = Field(default=0, ge=0)
    tags: list[str] | None = None


def _recommendations(results: list[RecommendedItem]) -> dict:
    return {"ok": True, "items": [rec.to_dict() for rec in results]}


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"ok": True}


@app.post("/admin/sync")
async def trigger_sync(
    _: None = Depends(verify_admin_token),
) -> dict:
    """Trigger an immediate catalog sync.

    Overlapping triggers collapse: if a sync is already running this
    returns ok with new_count 0.
    """
    logger.info("Admin triggered catalog sync")

    result = await perform_sync()
    if isinstance(result, SyncError):
        return {"ok": False, "new_count": 0, "error": result.message}
    return {"ok": True, "new_count": result.new_count, "error": None}


@app.get("/sync/status")
async def get_sync_status(
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    """Return the last sync outcome and catalog size."""
    status = await service.get_sync_status()
    total = await service.count()
    unviewed = await service.count_unviewed()
    next_run = next_sync_at()

    if status is None:
        return {
            "ok": True,
            "last_sync_at": None,
            "last_sync_sources": [],
            "last_sync_count": 0,
            "is_syncing": False,
            "last_error": None,
            "total_synced": 0,
            "catalog_size": total,
            "unviewed": unviewed,
            "next_sync_at": next_run.isoformat() if next_run else None,
        }

    return {
        "ok": True,
        "last_sync_at": status.last_sync_at.isoformat() if status.last_sync_at else None,
        "last_sync_sources": [s for s in (status.last_sync_sources or "").split(",") if s],
        "last_sync_count": status.last_sync_count,
        "is_syncing": status.is_syncing,
        "last_error": status.last_error,
        "total_synced": status.total_synced,
        "catalog_size": total,
        "unviewed": unviewed,
        "next_sync_at": next_run.isoformat() if next_run else None,
    }


@app.get("/catalog")
async def list_catalog(
    category: str | None = None,
    q: str | None = None,
    new: bool = False,
    limit: int = 50,
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    """List catalog items, optionally filtered by category, search or recency."""
    limit = max(1, min(limit, 500))

    if q:
        items = await service.search(q, limit=limit)
    elif new:
        items = await service.list_new(limit=limit)
    elif category:
        items = await service.list_by_category(category, limit=limit)
    else:
        items = await service.list_all(limit=limit)

    return {"ok": True, "items": [catalog_item_to_dict(item) for item in items]}


@app.get("/catalog/{item_id}")
async def get_catalog_item(
    item_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    """Get one item, asking its provider when it is not stored locally."""
    item = await service.get_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"ok": True, "item": catalog_item_to_dict(item)}


@app.post("/catalog/{item_id}/viewed")
async def mark_item_viewed(
    item_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    updated = await service.mark_viewed(item_id)
    if not updated:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"ok": True}


@app.post("/interactions")
async def log_interaction(
    payload: InteractionPayload,
    tracker: InteractionTracker = Depends(get_tracker),
) -> dict:
    """Record a user interaction. Tracking failures never fail the request."""
    recorded = await tracker.log_interaction(
        item_id=payload.item_id,
        category_id=payload.category_id,
        interaction_type=payload.interaction_type,
        duration_ms=payload.duration_ms,
        tags=payload.tags,
    )
    return {"ok": True, "recorded": recorded}


@app.get("/recommendations/for-you")
async def recommended_for_you(
    scorer: RecommendationScorer = Depends(get_scorer),
) -> dict:
    return _recommendations(await scorer.get_recommended_for_you())


@app.get("/recommendations/similar/{item_id}")
async def similar_items(
    item_id: str,
    limit: int = 10,
    scorer: RecommendationScorer = Depends(get_scorer),
    service: CatalogService = Depends(get_catalog_service),
) -> dict:
    """Items similar to a stored item by category and tags."""
    item = await service.get_item(item_id, remote_fallback=False)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")

    results = await scorer.get_similar(
        item.id,
        item.category,
        load_tags(item.tags_json),
        limit=max(1, min(limit, 50)),
    )
    return _recommendations(results)


@app.get("/recommendations/popular-week")
async def popular_this_week(
    scorer: RecommendationScorer = Depends(get_scorer),
) -> dict:
    return _recommendations(await scorer.get_popular_this_week())


@app.get("/recommendations/trending")
async def trending(
    scorer: RecommendationScorer = Depends(get_scorer),
) -> dict:
    return _recommendations(await scorer.get_trending())


def main() -> None:
    """Run the application with uvicorn."""
    logger.info(f"Starting FastAPI server on {config.host}:{config.port}")
    uvicorn.run(
        "wallsync.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
