"""Content provider adapters and shared HTTP/retry plumbing."""

import httpx

from wallsync.providers.base import CatalogRecord, ProviderAdapter, SearchRequest
from wallsync.providers.http import ProviderHttpClient
from wallsync.providers.pexels import PexelsAdapter
from wallsync.providers.picsum import PicsumAdapter
from wallsync.providers.result import Err, ErrorKind, Ok, ProviderError, Result
from wallsync.providers.retry import RetryPolicy, retry_with_backoff
from wallsync.providers.unsplash import UnsplashAdapter
from wallsync.providers.wallhaven import WallhavenAdapter


def build_default_providers(cfg=None, transport: httpx.AsyncBaseTransport | None = None) -> list[ProviderAdapter]:
    """Build adapters in fallback-chain priority order.

    Args:
        cfg: Config instance, defaults to the loaded environment config
        transport: Optional httpx transport shared by all adapters (tests)

    Returns:
        Wallhaven, Picsum, Unsplash, Pexels
    """
    if cfg is None:
        from wallsync.config import config as cfg

    return [
        WallhavenAdapter.from_config(cfg, transport),
        PicsumAdapter.from_config(cfg, transport),
        UnsplashAdapter.from_config(cfg, transport),
        PexelsAdapter.from_config(cfg, transport),
    ]


__all__ = [
    "CatalogRecord",
    "ProviderAdapter",
    "SearchRequest",
    "ProviderHttpClient",
    "Ok",
    "Err",
    "ErrorKind",
    "ProviderError",
    "Result",
    "RetryPolicy",
    "retry_with_backoff",
    "WallhavenAdapter",
    "PicsumAdapter",
    "UnsplashAdapter",
    "PexelsAdapter",
    "build_default_providers",
]
