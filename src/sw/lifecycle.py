"""
Worker lifecycle hooks.

install primes the static namespace with the shell assets (all or nothing),
activate drops namespaces from other versions and claims open pages, and
page control messages can force activation or wipe every namespace.
"""

from __future__ import annotations

import asyncio

from sw.context import RuntimeContext
from sw.exceptions import InstallFailure, NetworkError
from sw.logging import get_logger
from sw.types import CacheNamespace, ControlMessage, MessageAction, Request, Response

logger = get_logger(__name__)


class LifecycleManager:
    """Install/activate hooks and page control commands."""

    def __init__(self, ctx: RuntimeContext) -> None:
        self.ctx = ctx

    @property
    def version(self) -> str:
        return self.ctx.settings.CACHE_VERSION

    async def _fetch_shell_asset(self, url: str) -> Response:
        response = await self.ctx.fetcher.fetch(Request(url=url))
        return response.raise_for_status()

    async def install(self) -> list[str]:
        """Prime the static namespace with every shell asset.

        All assets are fetched before anything is written, so a failure
        leaves the cache untouched. Ends by requesting skip-waiting.

        Returns:
            URLs written to the static namespace, in shell order.

        Raises:
            InstallFailure: If any shell asset cannot be fetched or is not ok.
        """
        namespace = self.ctx.settings.static_namespace
        urls = self.ctx.settings.shell_urls
        logger.info("Caching shell assets", namespace=namespace.name, count=len(urls))

        results = await asyncio.gather(
            *(self._fetch_shell_asset(url) for url in urls),
            return_exceptions=True,
        )
        for url, result in zip(urls, results):
            if isinstance(result, NetworkError):
                raise InstallFailure(
                    "Shell asset could not be cached",
                    context={"url": url, "namespace": namespace.name, "cause": str(result)},
                ) from result
            if isinstance(result, BaseException):
                raise result

        store = await self.ctx.storage.open(namespace)
        for url, response in zip(urls, results):
            await store.put(url, response)

        logger.info("Shell assets cached", namespace=namespace.name)
        self.ctx.skip_waiting()
        return urls

    async def activate(self) -> list[str]:
        """Delete namespaces from other versions, then claim open pages.

        Names that do not follow the `<version>-<role>` convention are
        treated as stale as well.

        Returns:
            Names of the deleted namespaces.
        """
        deleted: list[str] = []
        for name in await self.ctx.storage.list_namespaces():
            namespace = CacheNamespace.parse(name)
            if namespace is not None and namespace.version == self.version:
                continue
            if await self.ctx.storage.delete_namespace(name):
                logger.info("Deleted old cache", namespace=name)
                deleted.append(name)

        claimed = self.ctx.clients.claim(self.version)
        logger.info("Activated", deleted=len(deleted), claimed=claimed)
        return deleted

    async def clear_all(self) -> list[str]:
        """Delete every namespace, whatever its version or role."""
        names = await self.ctx.storage.list_namespaces()
        for name in names:
            await self.ctx.storage.delete_namespace(name)
        logger.info("Cleared all caches", count=len(names))
        return names

    async def handle_message(self, message: ControlMessage) -> None:
        """Apply a control command posted by a page."""
        if message.action == MessageAction.SKIP_WAITING:
            self.ctx.skip_waiting()
        elif message.action == MessageAction.CLEAR_CACHE:
            await self.clear_all()
