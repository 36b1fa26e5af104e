"""
Run Channel for Notionflow.

One broadcast channel per flow run id. A channel holds the set of
currently attached observers and fans every posted progress event out
to them. Channels are reached only through ChannelRegistry.get(run_id),
which lazily creates or returns the instance for that id.

Delivery semantics:
    - attach() takes effect immediately, with no replay of past events
    - post() stamps, serializes and sends to every observer in turn
    - an observer whose send fails is removed; the rest still receive
    - posts to one channel are serialized, so observers see one order

Observers are anything with ``async send_text(str)``: a FastAPI
WebSocket, or a ChannelConnection handed out by connect().
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .events import ProgressEvent

logger = logging.getLogger(__name__)


class ChannelClosedError(Exception):
    """Raised when reading from or writing to a closed channel connection."""


@runtime_checkable
class Observer(Protocol):
    """A live connection that can receive serialized events."""

    async def send_text(self, data: str) -> None: ...


# =============================================================================
# Connection
# =============================================================================


class _Abort:
    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


_CLOSED = object()


class ChannelConnection:
    """
    In-memory duplex connection to a run channel.

    The channel delivers into the connection's inbox (send_text); the
    holder reads with receive() and may post back with send(). Closing
    detaches it from the channel and wakes any pending receive().
    """

    def __init__(self, channel: RunChannel):
        self._channel = channel
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def run_id(self) -> str:
        return self._channel.run_id

    async def send_text(self, data: str) -> None:
        if self._closed:
            raise ChannelClosedError(f"Connection to channel {self.run_id} is closed")
        self._inbox.put_nowait(data)

    async def receive(self) -> str:
        """
        Wait for the next serialized event.

        Raises:
            ChannelClosedError: After close()
            Exception: The error passed to abort()
        """
        item = await self._inbox.get()
        if item is _CLOSED:
            raise ChannelClosedError(f"Connection to channel {self.run_id} is closed")
        if isinstance(item, _Abort):
            raise item.error
        return item

    async def send(self, message: ProgressEvent | Mapping[str, Any]) -> ProgressEvent:
        """Post a message to the channel this connection is attached to."""
        if self._closed:
            raise ChannelClosedError(f"Connection to channel {self.run_id} is closed")
        return await self._channel.post(message)

    def close(self) -> None:
        """Detach and end the connection cleanly. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        self._channel.detach(self)
        self._inbox.put_nowait(_CLOSED)

    def abort(self, error: BaseException) -> None:
        """Detach and make the next receive() raise ``error``."""
        if self._closed:
            return
        self._closed = True
        self._channel.detach(self)
        self._inbox.put_nowait(_Abort(error))


# =============================================================================
# Channel
# =============================================================================


class RunChannel:
    """Broadcast channel for a single run id."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        self._observers: list[Observer] = []
        self._lock = asyncio.Lock()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    @property
    def idle(self) -> bool:
        """No observers and no delivery in progress."""
        return not self._observers and not self._lock.locked()

    def attach(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)
            logger.debug(f"[channel] {self.run_id}: attached ({len(self._observers)} observers)")

    def detach(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)
            logger.debug(f"[channel] {self.run_id}: detached ({len(self._observers)} observers)")

    def connect(self) -> ChannelConnection:
        """Open an in-memory duplex connection and attach it."""
        connection = ChannelConnection(self)
        self.attach(connection)
        return connection

    async def post(self, event: ProgressEvent | Mapping[str, Any]) -> ProgressEvent:
        """
        Stamp an event and deliver it to every attached observer.

        Never raises for delivery failures; the failing observer is
        dropped instead.

        Args:
            event: ProgressEvent, or a wire-shaped mapping with a "type"

        Returns:
            The event as delivered (with its timestamp)

        Raises:
            InvalidEventError: If a mapping has no string "type"
        """
        if not isinstance(event, ProgressEvent):
            event = ProgressEvent.from_message(event, default_run_id=self.run_id)

        async with self._lock:
            stamped = event.stamped()
            data = json.dumps(stamped.to_message(), default=str)

            failed: list[Observer] = []
            for observer in list(self._observers):
                try:
                    await observer.send_text(data)
                except Exception as e:
                    logger.warning(f"[channel] {self.run_id}: dropping observer after send failure: {e}")
                    failed.append(observer)

            for observer in failed:
                self.detach(observer)

        return stamped

    def close_connections(self) -> None:
        """End every in-memory connection cleanly (used at shutdown)."""
        for observer in list(self._observers):
            if isinstance(observer, ChannelConnection):
                observer.close()


# =============================================================================
# Registry
# =============================================================================


class ChannelRegistry:
    """
    Resolver from run id to its channel.

    Run ids are normalized to strings, so 42 and "42" address the same
    channel.
    """

    def __init__(self):
        self._channels: dict[str, RunChannel] = {}

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, run_id: object) -> bool:
        return str(run_id) in self._channels

    def get(self, run_id: int | str) -> RunChannel:
        key = str(run_id)
        channel = self._channels.get(key)
        if channel is None:
            channel = RunChannel(key)
            self._channels[key] = channel
        return channel

    async def post(self, run_id: int | str, event: ProgressEvent | Mapping[str, Any]) -> ProgressEvent:
        return await self.get(run_id).post(event)

    def release(self, run_id: int | str) -> bool:
        """
        Forget a channel that has no observers.

        Returns:
            True if the channel was removed
        """
        key = str(run_id)
        channel = self._channels.get(key)
        if channel is not None and channel.idle:
            del self._channels[key]
            return True
        return False

    def close(self) -> None:
        """End all in-memory connections and forget every channel."""
        for channel in self._channels.values():
            channel.close_connections()
        self._channels.clear()
