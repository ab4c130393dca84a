"""
Runtime context for the worker.

Everything a browser would provide ambiently (cache storage, fetch, timers,
the set of open pages, skip-waiting) is bundled into a RuntimeContext that is
handed to the router, strategies, lifecycle manager and scheduler.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sw.cache.base import CacheStorage
from sw.config import Settings
from sw.logging import get_logger
from sw.network import Fetcher
from sw.tasks import DetachedTasks
from sw.types import Notification, generate_id

logger = get_logger(__name__)


class Clock(ABC):
    """Time source and timer."""

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds on a monotonic clock."""
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend for the given number of seconds."""
        ...


class SystemClock(Clock):
    """Clock backed by the event loop."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


@dataclass
class Client:
    """An open page the worker can message."""

    url: str
    client_id: str = field(default_factory=lambda: generate_id("client"))
    controller: str | None = None  # cache version of the controlling worker
    messages: list[dict[str, Any]] = field(default_factory=list)

    def post_message(self, notification: Notification) -> None:
        """Deliver a notification to the page."""
        self.messages.append(notification.to_dict())


class ClientRegistry:
    """Open pages within the worker's scope."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}

    def open(self, url: str) -> Client:
        """Register a newly opened page."""
        client = Client(url=url)
        self._clients[client.client_id] = client
        return client

    def close(self, client_id: str) -> bool:
        """Forget a page. Returns True if it was open."""
        return self._clients.pop(client_id, None) is not None

    def match_all(self) -> list[Client]:
        """All open pages, in the order they were opened."""
        return list(self._clients.values())

    def claim(self, version: str) -> int:
        """Make the given worker version the controller of every open page.

        Returns:
            Number of pages whose controller changed.
        """
        changed = 0
        for client in self._clients.values():
            if client.controller != version:
                client.controller = version
                changed += 1
        return changed


@dataclass
class RuntimeContext:
    """Host capabilities and settings shared by every worker component."""

    settings: Settings
    storage: CacheStorage
    fetcher: Fetcher
    clock: Clock = field(default_factory=SystemClock)
    clients: ClientRegistry = field(default_factory=ClientRegistry)
    tasks: DetachedTasks = field(default_factory=DetachedTasks)
    skip_waiting_requested: bool = False

    def skip_waiting(self) -> None:
        """Ask the host to activate this worker without waiting for old pages."""
        if not self.skip_waiting_requested:
            logger.debug("Skip waiting requested")
        self.skip_waiting_requested = True
