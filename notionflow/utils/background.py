"""
Background work handle.

Work handed to a BackgroundWork instance runs concurrently with the code
that spawned it and is never awaited on the request path. The owner of
the handle calls drain() before tearing down anything the work depends
on (database engine, channels).
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundWork:
    """Tracks fire-and-forget tasks until they settle."""

    def __init__(self, name: str = "background"):
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        """
        Schedule a coroutine without awaiting it.

        Must be called from a running event loop.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"[{self.name}] Background task {task.get_name()} failed: {exc}",
                exc_info=exc,
            )

    async def drain(self) -> None:
        """Wait for every outstanding task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
