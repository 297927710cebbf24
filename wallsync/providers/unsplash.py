"""Unsplash adapter (requires an access key)."""

import random
from typing import Any

import httpx

from wallsync.catalog.categories import SyncCategory
from wallsync.logging import get_logger
from wallsync.providers.base import CatalogRecord, ProviderAdapter, SearchRequest, expect_list
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.result import Ok, Result
from wallsync.timeutils import parse_timestamp

logger = get_logger(__name__)

UNSPLASH_BASE_URL = "https://api.unsplash.com/"
CREDENTIAL = "UNSPLASH_ACCESS_KEY"


class UnsplashAdapter(ProviderAdapter):
    """Search per category, paging forward from the stored cursor."""

    name = "unsplash"
    required_credentials = (CREDENTIAL,)
    paginated = True

    @classmethod
    def from_config(cls, cfg, transport: httpx.AsyncBaseTransport | None = None) -> "UnsplashAdapter":
        key = cfg.unsplash_access_key
        headers = {"Accept-Version": "v1"}
        if key:
            headers["Authorization"] = f"Client-ID {key}"
        http = ProviderHttpClient(
            UNSPLASH_BASE_URL,
            headers=headers,
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
        result = await self.http.get_json("search/photos", params=params)
        if not isinstance(result, Ok):
            return result
        return expect_list(result.value, "results")

    async def fetch_by_id(self, source_id: str) -> Result[dict[str, Any] | None]:
        result = await self.http.get_json(f"photos/{source_id}")
        if not isinstance(result, Ok):
            return result
        return Ok(result.value if isinstance(result.value, dict) else None)

    async def track_download(self, source_id: str) -> bool:
        """Report a download to Unsplash as its API guidelines require.

        Best effort: failures are logged and reported as False.

        Args:
            source_id: Unsplash photo ID

        Returns:
            True if the ping succeeded
        """
        if not self.has_credentials():
            return False
        result = await self.http.get_json(f"photos/{source_id}/download")
        if not isinstance(result, Ok):
            logger.warning(f"Unsplash download tracking failed for {source_id}: {result}")
            return False
        return True

    def to_record(self, raw: dict[str, Any], category: SyncCategory) -> CatalogRecord:
        urls = raw["urls"]
        user = raw.get("user") or {}
        user_links = user.get("links") or {}
        links = raw.get("links") or {}
        name = user.get("name") or ""
        tags = [tag["title"] for tag in raw.get("tags") or [] if tag.get("title")]

        return CatalogRecord(
            source=self.name,
            source_id=str(raw["id"]),
            category=category.value,
            thumbnail_url=urls["small"],
            full_url=urls["regular"],
            preview_url=urls["regular"],
            original_url=urls.get("full") or urls["regular"],
            width=int(raw.get("width") or 0),
            height=int(raw.get("height") or 0),
            color=raw.get("color"),
            description=raw.get("alt_description") or raw.get("description"),
            photographer_name=name,
            photographer_url=user_links.get("html"),
            source_url=links.get("html"),
            attribution_text=f"Photo by {name} on Unsplash",
            tags=tags,
            popularity=int(raw.get("likes") or 0),
            source_created_at=parse_timestamp(raw.get("created_at")),
        )
