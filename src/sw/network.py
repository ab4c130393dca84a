"""
Network fetch capability.

The worker never talks to the network directly; it is handed a Fetcher.
HttpxFetcher is the real implementation used by the CLI against the dev
server. Tests inject scripted fetchers.

Fetchers raise NetworkError only when no response was received. Non-ok
responses are returned as-is; callers decide whether they are acceptable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from sw import __version__
from sw.exceptions import NetworkError
from sw.logging import get_logger
from sw.types import Request, Response

logger = get_logger(__name__)

USER_AGENT = f"wedding-sw/{__version__}"

# Request headers that only make sense to the browser
_HOP_HEADERS = {"host", "content-length", "connection"}


class Fetcher(ABC):
    """Abstract network fetch capability."""

    @abstractmethod
    async def fetch(self, request: Request) -> Response:
        """Fetch a request from the network.

        Raises:
            NetworkError: If no response could be obtained.
        """
        ...

    async def close(self) -> None:
        """Release any open connections."""
        return None


class HttpxFetcher(Fetcher):
    """Fetches requests over HTTP with httpx."""

    def __init__(self, timeout: float = 30.0) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds.
        """
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, request: Request) -> Response:
        client = await self._get_client()
        headers = {k: v for k, v in request.headers if k.lower() not in _HOP_HEADERS}
        if request.bypass_cache:
            headers["Cache-Control"] = "no-cache"
            headers["Pragma"] = "no-cache"

        try:
            resp = await client.request(request.method, request.url, headers=headers)
        except httpx.HTTPError as e:
            logger.debug("Fetch failed", url=request.url, error=str(e))
            raise NetworkError(
                "Fetch failed",
                context={"url": request.url, "error": type(e).__name__},
            ) from e

        return Response(
            url=str(resp.url),
            status=resp.status_code,
            headers=tuple(resp.headers.items()),
            body=resp.content,
        )
