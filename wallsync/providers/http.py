"""Async HTTP client shared by provider adapters."""

from typing import Any

import httpx

from wallsync.logging import get_logger
from wallsync.providers.result import Err, ErrorKind, Ok, Result, classify_status

logger = get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0
USER_AGENT = "wallsync/0.1"


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class ProviderHttpClient:
    """Thin httpx wrapper that turns each response into ``Ok``/``Err``.

    A single call is one attempt; backoff lives in ``retry_with_backoff``.
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Provider API root
            headers: Default headers (auth, accept)
            connect_timeout: Connect timeout in seconds
            read_timeout: Read timeout in seconds
            transport: Optional transport override (tests)
        """
        self.base_url = base_url
        self.headers = {"User-Agent": USER_AGENT, **(headers or {})}
        self.timeout = httpx.Timeout(read_timeout, connect=connect_timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_json(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Result[Any]:
        """Perform one GET and classify the outcome.

        Args:
            path: Path relative to the base URL
            params: Query parameters, ``None`` values are dropped

        Returns:
            Ok(parsed JSON) or Err with RETRYABLE/FATAL kind
        """
        client = await self._get_client()
        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await client.get(path, params=query)
        except httpx.TimeoutException as e:
            return Err(ErrorKind.RETRYABLE, f"timeout: {e!r}")
        except httpx.RequestError as e:
            return Err(ErrorKind.RETRYABLE, f"request error: {e!r}")

        if response.status_code >= 400:
            kind = classify_status(response.status_code)
            retry_after = None
            if response.status_code == 429:
                retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            return Err(
                kind,
                response.reason_phrase or "request failed",
                status_code=response.status_code,
                retry_after=retry_after,
            )

        try:
            return Ok(response.json())
        except ValueError as e:
            return Err(
                ErrorKind.FATAL,
                f"malformed response: {e}",
                status_code=response.status_code,
            )
