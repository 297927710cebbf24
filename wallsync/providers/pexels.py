"""Pexels adapter (requires an API key)."""

import random
from typing import Any

import httpx

from wallsync.catalog.categories import SyncCategory
from wallsync.providers.base import CatalogRecord, ProviderAdapter, SearchRequest, expect_list
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.result import Ok, Result

PEXELS_BASE_URL = "https://api.pexels.com/v1/"
CREDENTIAL = "PEXELS_API_KEY"


class PexelsAdapter(ProviderAdapter):
    """Search per category, paging forward from the stored cursor."""

    name = "pexels"
    required_credentials = (CREDENTIAL,)
    paginated = True

    @classmethod
    def from_config(cls, cfg, transport: httpx.AsyncBaseTransport | None = None) -> "PexelsAdapter":
        key = cfg.pexels_api_key
        http = ProviderHttpClient(
            PEXELS_BASE_URL,
            headers={"Authorization": key} if key else None,
            connect_timeout=cfg.http_connect_timeout,
            read_timeout=cfg.http_read_timeout,
            transport=transport,
        )
        return cls(http, credentials={CREDENTIAL: key}, per_page=cfg.sync_per_category)

    def plan_requests(self, cursor: int = 1, rng: random.Random | None = None) -> list[SearchRequest]:
        page = max(cursor, 1)
        return [SearchRequest(category.random_term(rng), category, page) for category in SyncCategory]

    async def search(
        self,
        query: str,
        category: SyncCategory,
        page: int = 1,
    ) -> Result[list[dict[str, Any]]]:
        params = {
            "query": query,
            "page": page,
            "per_page": self.per_page,
            "orientation": "portrait",
            "color": "black" if category is SyncCategory.AMOLED else None,
        }
        result = await self.http.get_json("search", params=params)
        if not isinstance(result, Ok):
            return result
        return expect_list(result.value, "photos")

    async def fetch_by_id(self, source_id: str) -> Result[dict[str, Any] | None]:
        result = await self.http.get_json(f"photos/{source_id}")
        if not isinstance(result, Ok):
            return result
        return Ok(result.value if isinstance(result.value, dict) else None)

    def to_record(self, raw: dict[str, Any], category: SyncCategory) -> CatalogRecord:
        src = raw["src"]
        photographer = raw.get("photographer") or ""

        return CatalogRecord(
            source=self.name,
            source_id=str(raw["id"]),
            category=category.value,
            thumbnail_url=src["medium"],
            full_url=src.get("large2x") or src["large"],
            preview_url=src["large"],
            original_url=src.get("original"),
            width=int(raw.get("width") or 0),
            height=int(raw.get("height") or 0),
            color=raw.get("avg_color"),
            description=raw.get("alt"),
            photographer_name=photographer,
            photographer_url=raw.get("photographer_url"),
            source_url=raw.get("url"),
            attribution_text=f"Photo by {photographer} on Pexels",
        )
