"""
Cache strategies.

Each strategy resolves one request using the cache storage and the network:
- network_first: fresh content when online, cached copy when offline
- cache_first: cached copy when present, network otherwise
- stale_while_revalidate: cached copy now, refreshed copy next time
- image_cache_first: cache_first confined to the image namespace

Successful (2xx) network responses are written to the dynamic namespace
(images: the image namespace) before the strategy returns. Non-ok responses
are passed back to the page uncached.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from sw.context import RuntimeContext
from sw.exceptions import CacheMiss, NetworkError
from sw.logging import get_logger
from sw.types import CacheNamespace, CacheRole, Request, Response, RouteKind

logger = get_logger(__name__)

# Order in which namespaces are searched when a strategy falls back to "any
# cached copy". Dynamic entries are newer than the install-time static copies.
MATCH_ORDER: tuple[CacheRole, ...] = (CacheRole.DYNAMIC, CacheRole.STATIC, CacheRole.IMAGE)

Strategy = Callable[[Request], Awaitable[Response]]


class CacheStrategies:
    """The strategy set bound to one runtime context."""

    def __init__(self, ctx: RuntimeContext) -> None:
        self.ctx = ctx
        self._by_kind: dict[RouteKind, Strategy] = {
            RouteKind.NETWORK_FIRST: self.network_first,
            RouteKind.CACHE_FIRST: self.cache_first,
            RouteKind.STALE_WHILE_REVALIDATE: self.stale_while_revalidate,
            RouteKind.IMAGE_CACHE_FIRST: self.image_cache_first,
        }

    @property
    def search_order(self) -> list[CacheNamespace]:
        """Current-version namespaces in cross-store lookup order."""
        return [self.ctx.settings.namespace(role) for role in MATCH_ORDER]

    def for_kind(self, kind: RouteKind) -> Strategy:
        """Look up the strategy for a routing decision.

        Raises:
            KeyError: For RouteKind.PASS_THROUGH, which has no strategy.
        """
        return self._by_kind[kind]

    async def match_any(self, request: Request | str) -> Response | None:
        """Best cached copy across the current namespaces, or None."""
        return await self.ctx.storage.match(request, self.search_order)

    async def match_required(self, request: Request | str) -> Response:
        """Best cached copy across the current namespaces.

        Raises:
            CacheMiss: If no namespace holds the request.
        """
        cached = await self.match_any(request)
        if cached is None:
            url = request.url if isinstance(request, Request) else request
            raise CacheMiss(
                "No cached entry",
                context={"url": url, "namespaces": [ns.name for ns in self.search_order]},
            )
        return cached

    async def _fetch_and_store(self, request: Request, namespace: CacheNamespace) -> Response:
        """Fetch from the network and cache the response if it is ok."""
        response = await self.ctx.fetcher.fetch(request)
        if response.ok:
            store = await self.ctx.storage.open(namespace)
            await store.put(request, response)
            logger.debug("Cached response", url=request.url, namespace=namespace.name)
        return response

    async def network_first(self, request: Request) -> Response:
        """Network, falling back to any cached copy when the network fails.

        Raises:
            NetworkError: If the network fails and nothing is cached.
        """
        try:
            return await self._fetch_and_store(request, self.ctx.settings.dynamic_namespace)
        except NetworkError:
            cached = await self.match_any(request)
            if cached is not None:
                logger.info("Network failed, serving cached copy", url=request.url)
                return cached
            raise

    async def cache_first(self, request: Request) -> Response:
        """Any cached copy, otherwise the network.

        Raises:
            NetworkError: If nothing is cached and the network fails.
        """
        cached = await self.match_any(request)
        if cached is not None:
            return cached
        return await self._fetch_and_store(request, self.ctx.settings.dynamic_namespace)

    async def image_cache_first(self, request: Request) -> Response:
        """cache_first reading and writing only the image namespace.

        Raises:
            NetworkError: If the image is not cached and the network fails.
        """
        namespace = self.ctx.settings.image_namespace
        cached = await self.ctx.storage.match(request, [namespace])
        if cached is not None:
            return cached
        return await self._fetch_and_store(request, namespace)

    async def stale_while_revalidate(self, request: Request) -> Response:
        """Cached copy immediately, with a detached refresh of the dynamic copy.

        Without a cached copy the caller waits for the network like cache_first.

        Raises:
            NetworkError: If nothing is cached and the network fails.
        """
        namespace = self.ctx.settings.dynamic_namespace
        cached = await self.match_any(request)
        if cached is None:
            return await self._fetch_and_store(request, namespace)

        self.ctx.tasks.spawn(
            self._fetch_and_store(request, namespace),
            name=f"revalidate {request.url}",
        )
        return cached
