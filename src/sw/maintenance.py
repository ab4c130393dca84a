"""
Periodic cache maintenance.

Two independent jobs:
- Trim: keep bounded namespaces at their cap by evicting the oldest entries
- Update check: re-fetch the site config and tell open pages when it changed

Neither job raises. Failures are logged and the next run tries again.
"""

from __future__ import annotations

from sw.context import RuntimeContext
from sw.logging import get_logger
from sw.types import CacheNamespace, Notification, Request

logger = get_logger(__name__)


class MaintenanceScheduler:
    """Cache trimming and config update checks."""

    def __init__(self, ctx: RuntimeContext) -> None:
        self.ctx = ctx
        self.last_trim_at: float | None = None

    async def trim_cache(self, namespace: CacheNamespace | str, max_items: int) -> int:
        """Evict the oldest entries until at most max_items remain.

        A namespace that does not exist is left alone (not created).

        Returns:
            Number of entries deleted.
        """
        if not await self.ctx.storage.has(namespace):
            return 0
        store = await self.ctx.storage.open(namespace)
        keys = await store.keys()
        excess = len(keys) - max_items
        if excess <= 0:
            return 0

        removed = 0
        for key in keys[:excess]:
            if await store.delete(key):
                removed += 1
        logger.debug("Trimmed cache", namespace=store.name, removed=removed, cap=max_items)
        return removed

    async def trim_all(self) -> dict[str, int]:
        """Trim every bounded namespace.

        Returns:
            Entries removed per namespace name.
        """
        removed: dict[str, int] = {}
        for namespace, cap in self.ctx.settings.cache_limits.items():
            try:
                removed[namespace.name] = await self.trim_cache(namespace, cap)
            except Exception as e:
                logger.error("Cache trim failed", namespace=namespace.name, error=str(e))
        self.last_trim_at = self.ctx.clock.monotonic()
        return removed

    async def run_trim_loop(self, iterations: int | None = None) -> None:
        """Trim on a fixed interval, forever or for a number of rounds.

        The first trim happens one interval after start.
        """
        interval = self.ctx.settings.TRIM_INTERVAL_SECONDS
        done = 0
        while iterations is None or done < iterations:
            await self.ctx.clock.sleep(interval)
            await self.trim_all()
            done += 1

    async def check_for_updates(self) -> bool:
        """Compare the live config file with the cached static copy.

        Every open page gets one UPDATE_AVAILABLE notification when they
        differ. The cached copy itself is never touched here.

        Returns:
            True if pages were notified.
        """
        settings = self.ctx.settings
        url = settings.config_url
        try:
            response = await self.ctx.fetcher.fetch(Request(url=url, bypass_cache=True))
            response.raise_for_status()

            cached = await self.ctx.storage.match(url, [settings.static_namespace])
        except Exception as e:
            logger.error("Update check failed", url=url, error=str(e), exc_info=True)
            return False

        if cached is None:
            logger.debug("No cached config to compare against", url=url)
            return False
        if cached.body == response.body:
            return False

        clients = self.ctx.clients.match_all()
        notification = Notification.update_available(settings.UPDATE_MESSAGE)
        for client in clients:
            client.post_message(notification)
        logger.info("Config changed, notified pages", clients=len(clients))
        return True

    async def sync_rsvps(self) -> None:
        """Replay queued RSVP submissions.

        Nothing queues submissions yet, so there is nothing to send.
        """
        logger.info("Syncing RSVPs")
