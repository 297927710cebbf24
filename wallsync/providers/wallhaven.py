"""Wallhaven adapter (no credentials required)."""

import random
from typing import Any

import httpx

from wallsync.catalog.categories import SyncCategory
from wallsync.providers.base import CatalogRecord, ProviderAdapter, SearchRequest, expect_list
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.result import Ok, Result
from wallsync.timeutils import parse_timestamp

WALLHAVEN_BASE_URL = "https://wallhaven.cc/api/v1/"
WALLHAVEN_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# General category, SFW only, portrait phone-sized images
SEARCH_DEFAULTS = {
    "categories": "100",
    "purity": "100",
    "order": "desc",
    "ratios": "portrait",
    "atleast": "1080x1920",
}


class WallhavenAdapter(ProviderAdapter):
    """Toplist search per category plus a newest-first query for NEW."""

    name = "wallhaven"

    @classmethod
    def from_config(cls, cfg, transport: httpx.AsyncBaseTransport | None = None) -> "WallhavenAdapter":
        http = ProviderHttpClient(
            WALLHAVEN_BASE_URL,
            connect_timeout=cfg.http_connect_timeout,
            read_timeout=cfg.http_read_timeout,
            transport=transport,
        )
        return cls(http, per_page=cfg.sync_per_category)

    def plan_requests(self, cursor: int = 1, rng: random.Random | None = None) -> list[SearchRequest]:
        requests = [
            SearchRequest(category.random_term(rng), category)
            for category in SyncCategory
            if category is not SyncCategory.NEW
        ]
        requests.append(SearchRequest("", SyncCategory.NEW))
        return requests

    async def search(
        self,
        query: str,
        category: SyncCategory,
        page: int = 1,
    ) -> Result[list[dict[str, Any]]]:
        sorting = "date_added" if category is SyncCategory.NEW else "toplist"
        params = {**SEARCH_DEFAULTS, "q": query, "sorting": sorting, "page": page}
        result = await self.http.get_json("search", params=params)
        if not isinstance(result, Ok):
            return result
        return expect_list(result.value, "data")

    async def fetch_by_id(self, source_id: str) -> Result[dict[str, Any] | None]:
        result = await self.http.get_json(f"w/{source_id}")
        if not isinstance(result, Ok):
            return result
        data = result.value.get("data") if isinstance(result.value, dict) else None
        return Ok(data if isinstance(data, dict) else None)

    def to_record(self, raw: dict[str, Any], category: SyncCategory) -> CatalogRecord:
        path = raw["path"]
        thumbs = raw.get("thumbs") or {}
        colors = raw.get("colors") or []
        tags = [tag["name"] for tag in raw.get("tags") or [] if tag.get("name")]

        return CatalogRecord(
            source=self.name,
            source_id=str(raw["id"]),
            category=category.value,
            thumbnail_url=thumbs.get("small") or thumbs.get("large") or path,
            full_url=path,
            preview_url=thumbs.get("large") or path,
            original_url=path,
            width=int(raw.get("dimension_x") or 0),
            height=int(raw.get("dimension_y") or 0),
            color=colors[0] if colors else None,
            description=f"Wallhaven: {raw.get('resolution', '')}",
            photographer_name="Wallhaven Community",
            photographer_url=raw.get("url"),
            source_url=raw.get("url"),
            attribution_text="From Wallhaven",
            tags=tags,
            popularity=int(raw.get("favorites") or 0),
            source_created_at=parse_timestamp(raw.get("created_at"), WALLHAVEN_DATE_FORMAT),
        )
