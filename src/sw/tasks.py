"""
Detached background tasks.

Work that must outlive the handler that started it (the refresh behind a
stale-while-revalidate hit) runs as a detached task. Its outcome is never
seen by the original caller: failures are logged here and go no further.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from sw.logging import get_logger

logger = get_logger(__name__)


class DetachedTasks:
    """Tracks fire-and-forget tasks so they are not garbage collected mid-flight."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Start a coroutine detached from its caller.

        Args:
            coro: The work to run.
            name: Label used in logs.

        Returns:
            The running task (callers normally drop it).
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Detached task cancelled", task=task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.warning(
                "Detached task failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    async def drain(self) -> None:
        """Wait until every task spawned so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
