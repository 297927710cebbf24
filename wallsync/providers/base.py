"""Provider adapter contract and the canonical catalog record."""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from wallsync.catalog.categories import SyncCategory
from wallsync.logging import get_logger
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.result import Err, ErrorKind, Ok, Result
from wallsync.storage.json_utils import dump_tags
from wallsync.storage.repo_catalog import catalog_item_id

logger = get_logger(__name__)


@dataclass
class CatalogRecord:
    """Canonical item produced by an adapter, ready to persist."""

    source: str
    source_id: str
    category: str
    thumbnail_url: str
    full_url: str
    preview_url: str | None = None
    original_url: str | None = None
    width: int = 0
    height: int = 0
    color: str | None = None
    description: str | None = None
    photographer_name: str | None = None
    photographer_url: str | None = None
    source_url: str | None = None
    attribution_text: str | None = None
    search_query: str | None = None
    tags: list[str] = field(default_factory=list)
    popularity: int = 0
    source_created_at: datetime | None = None

    @property
    def id(self) -> str:
        return catalog_item_id(self.source, self.source_id)

    def to_row(self, synced_at: datetime) -> dict[str, Any]:
        """Column values for ``CatalogRepo.insert_ignore_on_conflict``."""
        return {
            "id": self.id,
            "source_id": self.source_id,
            "source": self.source,
            "thumbnail_url": self.thumbnail_url,
            "preview_url": self.preview_url or self.full_url,
            "full_url": self.full_url,
            "original_url": self.original_url or self.full_url,
            "width": self.width,
            "height": self.height,
            "color": self.color,
            "description": self.description,
            "photographer_name": self.photographer_name or "",
            "photographer_url": self.photographer_url,
            "source_url": self.source_url or "",
            "attribution_text": self.attribution_text or "",
            "category": self.category,
            "search_query": self.search_query,
            "tags_json": dump_tags(self.tags),
            "popularity": self.popularity,
            "synced_at": synced_at,
            "source_created_at": self.source_created_at,
        }


@dataclass(frozen=True)
class SearchRequest:
    """One planned provider call within a sync run."""

    query: str
    category: SyncCategory
    page: int = 1


class ProviderAdapter(ABC):
    """Translates one external content API into CatalogRecords.

    Subclasses set ``name`` (the stable source key) and
    ``required_credentials``. An adapter whose credentials are missing is
    skipped by the orchestrator rather than counted as failed.
    """

    name: str = ""
    required_credentials: tuple[str, ...] = ()
    paginated: bool = False

    def __init__(
        self,
        http: ProviderHttpClient,
        credentials: dict[str, str | None] | None = None,
        per_page: int = 30,
    ):
        self.http = http
        self.credentials = credentials or {}
        self.per_page = per_page

    def has_credentials(self) -> bool:
        return all(self.credentials.get(key) for key in self.required_credentials)

    @abstractmethod
    def plan_requests(
        self,
        cursor: int = 1,
        rng: random.Random | None = None,
    ) -> list[SearchRequest]:
        """Requests one sync run should make for this provider."""

    @abstractmethod
    async def search(
        self,
        query: str,
        category: SyncCategory,
        page: int = 1,
    ) -> Result[list[dict[str, Any]]]:
        """Fetch provider-native records for one query."""

    @abstractmethod
    def to_record(self, raw: dict[str, Any], category: SyncCategory) -> CatalogRecord:
        """Translate one provider-native record."""

    async def fetch_by_id(self, source_id: str) -> Result[dict[str, Any] | None]:
        """Fetch a single provider-native record, ``Ok(None)`` if unsupported."""
        return Ok(None)

    def next_cursor(self, cursor: int) -> int | None:
        """Cursor to persist after a successful run, ``None`` when unused."""
        if not self.paginated:
            return None
        return cursor + 1

    def translate(
        self,
        raws: list[dict[str, Any]],
        category: SyncCategory,
        query: str | None = None,
    ) -> list[CatalogRecord]:
        """Translate a page, dropping records the provider sent malformed."""
        records = []
        for raw in raws:
            try:
                record = self.to_record(raw, category)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"{self.name}: skipping malformed record: {e!r}")
                continue
            record.search_query = query or None
            records.append(record)
        return records

    async def close(self) -> None:
        await self.http.close()


def expect_list(payload: Any, key: str | None = None) -> Result[list[dict[str, Any]]]:
    """Pull a list of records out of a decoded payload.

    Args:
        payload: Decoded JSON body
        key: Envelope key holding the list, ``None`` for a bare list

    Returns:
        Ok(list) or a FATAL Err when the shape is wrong
    """
    items = payload.get(key) if key is not None and isinstance(payload, dict) else payload
    if not isinstance(items, list):
        return Err(ErrorKind.FATAL, f"malformed response: expected list at {key or 'root'}")
    return Ok([item for item in items if isinstance(item, dict)])
