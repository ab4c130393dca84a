"""
Request routing.

decide_route() is a pure function of the request shape; the RequestRouter
applies the chosen strategy and, for navigations, the offline fallback
document.
"""

from __future__ import annotations

from sw.config import Settings
from sw.context import RuntimeContext
from sw.exceptions import CacheMiss, NetworkError
from sw.logging import get_logger
from sw.strategies import CacheStrategies
from sw.types import Request, RequestDestination, RequestMode, Response, RouteKind

logger = get_logger(__name__)


def decide_route(request: Request, settings: Settings) -> RouteKind:
    """Pick the strategy for a request.

    Rules are checked in order: non-GET and cross-origin requests are not
    intercepted, then navigations, images and the config file get their own
    strategies and everything else is cache-first.
    """
    if request.method.upper() != "GET":
        return RouteKind.PASS_THROUGH
    if request.origin != settings.ORIGIN:
        return RouteKind.PASS_THROUGH
    if request.mode == RequestMode.NAVIGATE:
        return RouteKind.NETWORK_FIRST
    if request.destination == RequestDestination.IMAGE:
        return RouteKind.IMAGE_CACHE_FIRST
    if request.path.endswith(settings.CONFIG_SUFFIX):
        return RouteKind.STALE_WHILE_REVALIDATE
    return RouteKind.CACHE_FIRST


class RequestRouter:
    """Resolves intercepted requests."""

    def __init__(self, ctx: RuntimeContext, strategies: CacheStrategies | None = None) -> None:
        self.ctx = ctx
        self.strategies = strategies or CacheStrategies(ctx)

    def route(self, request: Request) -> RouteKind:
        return decide_route(request, self.ctx.settings)

    async def handle(self, request: Request) -> Response | None:
        """Resolve a request.

        Returns:
            The response, or None when the request is passed through to the
            host untouched.

        Raises:
            NetworkError: If the request can be served neither from the
                network nor from the cache.
        """
        kind = self.route(request)
        if kind == RouteKind.PASS_THROUGH:
            return None

        logger.debug("Routing request", url=request.url, route=kind.value)
        strategy = self.strategies.for_kind(kind)

        if kind != RouteKind.NETWORK_FIRST:
            return await strategy(request)

        try:
            return await strategy(request)
        except NetworkError as e:
            try:
                fallback = await self.strategies.match_required(self.ctx.settings.fallback_url)
            except CacheMiss:
                logger.warning("Navigation failed with no offline fallback", url=request.url)
                raise e
            logger.info("Serving offline fallback document", url=request.url)
            return fallback
