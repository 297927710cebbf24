"""Picsum adapter, the keyless last-resort source."""

import random
from typing import Any

import httpx

from wallsync.catalog.categories import SyncCategory
from wallsync.providers.base import CatalogRecord, ProviderAdapter, SearchRequest, expect_list
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.result import Ok, Result

PICSUM_BASE_URL = "https://picsum.photos/"
DEFAULT_PAGES = 4


def resized_url(photo_id: str, width: int, height: int) -> str:
    return f"https://picsum.photos/id/{photo_id}/{width}/{height}"


class PicsumAdapter(ProviderAdapter):
    """Lists generic photos page by page. Picsum has no search, so every
    record lands in NATURE."""

    name = "picsum"

    def __init__(self, http: ProviderHttpClient, per_page: int = 30, pages: int = DEFAULT_PAGES):
        super().__init__(http, per_page=per_page)
        self.pages = pages

    @classmethod
    def from_config(cls, cfg, transport: httpx.AsyncBaseTransport | None = None) -> "PicsumAdapter":
        http = ProviderHttpClient(
            PICSUM_BASE_URL,
            connect_timeout=cfg.http_connect_timeout,
            read_timeout=cfg.http_read_timeout,
            transport=transport,
        )
        return cls(http, per_page=cfg.sync_per_category, pages=cfg.sync_picsum_pages)

    def plan_requests(self, cursor: int = 1, rng: random.Random | None = None) -> list[SearchRequest]:
        return [SearchRequest("", SyncCategory.NATURE, page) for page in range(1, self.pages + 1)]

    async def search(
        self,
        query: str,
        category: SyncCategory,
        page: int = 1,
    ) -> Result[list[dict[str, Any]]]:
        result = await self.http.get_json("v2/list", params={"page": page, "limit": self.per_page})
        if not isinstance(result, Ok):
            return result
        return expect_list(result.value)

    async def fetch_by_id(self, source_id: str) -> Result[dict[str, Any] | None]:
        result = await self.http.get_json(f"id/{source_id}/info")
        if not isinstance(result, Ok):
            return result
        return Ok(result.value if isinstance(result.value, dict) else None)

    def to_record(self, raw: dict[str, Any], category: SyncCategory) -> CatalogRecord:
        photo_id = str(raw["id"])
        author = raw.get("author") or ""

        return CatalogRecord(
            source=self.name,
            source_id=photo_id,
            category=category.value,
            thumbnail_url=resized_url(photo_id, 400, 700),
            full_url=resized_url(photo_id, 1080, 1920),
            preview_url=resized_url(photo_id, 800, 1400),
            original_url=raw.get("download_url") or resized_url(photo_id, 1080, 1920),
            width=int(raw.get("width") or 0),
            height=int(raw.get("height") or 0),
            description=f"Photo by {author}",
            photographer_name=author,
            photographer_url=raw.get("url"),
            source_url=raw.get("url"),
            attribution_text=f"Photo by {author} via Picsum",
        )
