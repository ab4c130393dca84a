"""
Service worker event dispatch.

The host delivers events (install, activate, fetch, message, sync,
periodicsync) as typed objects; ServiceWorker maps each kind to a handler
through an explicit dispatch table and owns the trim timer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, ClassVar

from sw.context import RuntimeContext
from sw.exceptions import InstallFailure
from sw.lifecycle import LifecycleManager
from sw.logging import get_logger, log_context
from sw.maintenance import MaintenanceScheduler
from sw.router import RequestRouter
from sw.types import (
    RSVP_SYNC_TAG,
    UPDATE_CHECK_TAG,
    ControlMessage,
    EventKind,
    Request,
    WorkerState,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorkerEvent:
    """Base class for events delivered by the host."""

    kind: ClassVar[EventKind]


@dataclass(frozen=True)
class InstallEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.INSTALL


@dataclass(frozen=True)
class ActivateEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.ACTIVATE


@dataclass(frozen=True)
class FetchEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.FETCH

    request: Request
    client_id: str | None = None


@dataclass(frozen=True)
class MessageEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.MESSAGE

    data: Any
    client_id: str | None = None


@dataclass(frozen=True)
class SyncEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.SYNC

    tag: str


@dataclass(frozen=True)
class PeriodicSyncEvent(WorkerEvent):
    kind: ClassVar[EventKind] = EventKind.PERIODIC_SYNC

    tag: str


Handler = Callable[[Any], Awaitable[Any]]


class ServiceWorker:
    """One worker version bound to a runtime context."""

    def __init__(self, ctx: RuntimeContext) -> None:
        self.ctx = ctx
        self.lifecycle = LifecycleManager(ctx)
        self.router = RequestRouter(ctx)
        self.maintenance = MaintenanceScheduler(ctx)
        self.state = WorkerState.PARSED
        self._trim_task: asyncio.Task[None] | None = None

        self._handlers: dict[EventKind, Handler] = {
            EventKind.INSTALL: self._on_install,
            EventKind.ACTIVATE: self._on_activate,
            EventKind.FETCH: self._on_fetch,
            EventKind.MESSAGE: self._on_message,
            EventKind.SYNC: self._on_sync,
            EventKind.PERIODIC_SYNC: self._on_periodic_sync,
        }

    async def dispatch(self, event: WorkerEvent) -> Any:
        """Run the handler registered for the event's kind.

        Returns:
            Whatever the handler produces; for fetch events the Response, or
            None when the request is not intercepted.
        """
        handler = self._handlers[event.kind]
        with log_context(
            cache_version=self.ctx.settings.CACHE_VERSION,
            event=event.kind.value,
            client_id=getattr(event, "client_id", None),
        ):
            return await handler(event)

    def start(self) -> None:
        """Start the periodic trim timer."""
        if self._trim_task is None or self._trim_task.done():
            self._trim_task = asyncio.create_task(
                self.maintenance.run_trim_loop(), name="trim-loop"
            )

    async def stop(self) -> None:
        """Stop the trim timer and wait for outstanding background work."""
        if self._trim_task is not None:
            self._trim_task.cancel()
            await asyncio.gather(self._trim_task, return_exceptions=True)
            self._trim_task = None
        await self.ctx.tasks.drain()

    async def _on_install(self, event: InstallEvent) -> list[str]:
        self.state = WorkerState.INSTALLING
        try:
            urls = await self.lifecycle.install()
        except InstallFailure:
            self.state = WorkerState.REDUNDANT
            logger.error("Install failed")
            raise
        self.state = WorkerState.INSTALLED
        return urls

    async def _on_activate(self, event: ActivateEvent) -> list[str]:
        self.state = WorkerState.ACTIVATING
        deleted = await self.lifecycle.activate()
        self.state = WorkerState.ACTIVATED
        return deleted

    async def _on_fetch(self, event: FetchEvent) -> Any:
        return await self.router.handle(event.request)

    async def _on_message(self, event: MessageEvent) -> None:
        message = ControlMessage.from_dict(event.data)
        if message is None:
            logger.debug("Ignoring unknown message", data=event.data)
            return
        await self.lifecycle.handle_message(message)

    async def _on_sync(self, event: SyncEvent) -> None:
        if event.tag == RSVP_SYNC_TAG:
            await self.maintenance.sync_rsvps()

    async def _on_periodic_sync(self, event: PeriodicSyncEvent) -> bool:
        if event.tag == UPDATE_CHECK_TAG:
            return await self.maintenance.check_for_updates()
        return False
