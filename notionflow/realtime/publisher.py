"""
Progress Publisher for Notionflow.

A flow publishes milestones without awaiting their delivery. Events go
into a per-run queue; a single consumer task posts them to the run's
channel one at a time, so observers see them in program order.

The consumer runs on a BackgroundWork handle when one is given. The
request layer calls aclose() after the response is sent (FastAPI
BackgroundTasks), which lets the queue drain before the publisher is
discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from notionflow.utils.background import BackgroundWork

from .channel import ChannelRegistry
from .events import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressPublisher:
    """Ordered, fire-and-forget event delivery for one run."""

    def __init__(
        self,
        registry: ChannelRegistry,
        run_id: int | str,
        flow_name: str,
        *,
        background: BackgroundWork | None = None,
    ):
        self._registry = registry
        self.run_id = run_id
        self.flow_name = flow_name
        self._background = background
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._closed = False
        self.published: list[ProgressEvent] = []

    def publish(self, event_type: str, **payload: Any) -> ProgressEvent:
        """
        Queue a milestone for delivery and return immediately.

        Every event carries ``flow`` with the flow name.
        """
        if self._closed:
            raise RuntimeError(f"Publisher for run {self.run_id} is closed")

        event = ProgressEvent(
            type=event_type,
            flow_run_id=self.run_id,
            payload={"flow": self.flow_name, **payload},
        )
        self.published.append(event)
        self._queue.put_nowait(event)
        self._ensure_consumer()
        return event

    def _ensure_consumer(self) -> None:
        if self._consumer is not None:
            return
        coro = self._consume()
        name = f"progress-{self.run_id}"
        if self._background is not None:
            self._consumer = self._background.spawn(coro, name=name)
        else:
            self._consumer = asyncio.create_task(coro, name=name)

    async def _consume(self) -> None:
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self._registry.post(self.run_id, event)
            except Exception as e:
                logger.error(f"[publisher] Run {self.run_id}: failed to post {event.type}: {e}")
        self._consumer = None

    async def aclose(self) -> None:
        """Stop accepting events and wait until every queued one is delivered."""
        if self._closed:
            return
        self._closed = True

        if self._consumer is not None:
            await asyncio.shield(self._consumer)

        self._registry.release(self.run_id)
