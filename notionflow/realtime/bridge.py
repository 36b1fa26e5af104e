"""
Stream Bridge for Notionflow.

Turns a run channel into a one-way Server-Sent Events text stream.

Two lifecycles are joined here:
    upstream    a ChannelConnection attached to the run's channel
    downstream  the async generator consumed by the HTTP response

The bridge ends one whenever the other ends:
    - upstream closed   -> downstream finishes cleanly
    - upstream error    -> downstream raises that error
    - downstream closed or cancelled -> upstream connection is closed

Usage:
    bridge = StreamBridge(registry, flow_id)
    stream = bridge.open()          # raises BridgeHandshakeError
    return StreamingResponse(stream, media_type="text/event-stream")
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from .channel import ChannelClosedError, ChannelConnection, ChannelRegistry
from .events import EventType

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class BridgeHandshakeError(Exception):
    """Raised when the bridge cannot attach to the run channel."""


def format_sse_event(event_type: str, data: Any) -> str:
    """
    Format one SSE frame.

    Args:
        event_type: SSE event name
        data: JSON-serializable payload

    Returns:
        ``event: <type>\\ndata: <json>\\n\\n``
    """
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


def _decode(message: Any) -> Any:
    if isinstance(message, bytes):
        message = message.decode("utf-8")
    if isinstance(message, str):
        try:
            return json.loads(message)
        except json.JSONDecodeError:
            return message
    return message


class StreamBridge:
    """Coordinator between one channel subscription and one SSE stream."""

    def __init__(
        self,
        registry: ChannelRegistry,
        run_id: int | str,
        *,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ):
        """
        Args:
            registry: Channel resolver
            run_id: Run whose channel is observed
            is_disconnected: Optional probe for the downstream client
        """
        self._registry = registry
        self.run_id = str(run_id)
        self._is_disconnected = is_disconnected
        self._upstream: ChannelConnection | None = None

    @property
    def upstream(self) -> ChannelConnection | None:
        return self._upstream

    def open(self) -> AsyncIterator[str]:
        """
        Attach upstream and return the downstream frame iterator.

        The upstream attach happens here, before the first frame is
        produced, so no event posted after open() returns is missed.

        Raises:
            BridgeHandshakeError: If the channel connection cannot be made
        """
        try:
            self._upstream = self._registry.get(self.run_id).connect()
        except Exception as e:
            logger.error(f"[bridge] {self.run_id}: handshake failed: {e}")
            raise BridgeHandshakeError(f"Could not attach to channel {self.run_id}: {e}") from e

        logger.info(f"[bridge] {self.run_id}: stream opened")
        return self._stream(self._upstream)

    def close(self) -> None:
        """Close the upstream connection and release the channel if now idle."""
        if self._upstream is not None and not self._upstream.closed:
            self._upstream.close()
            logger.info(f"[bridge] {self.run_id}: upstream closed")
        self._registry.release(self.run_id)

    async def _stream(self, upstream: ChannelConnection) -> AsyncIterator[str]:
        try:
            yield format_sse_event(EventType.CONNECTED, {"flowId": self.run_id})

            while True:
                try:
                    raw = await upstream.receive()
                except ChannelClosedError:
                    logger.info(f"[bridge] {self.run_id}: upstream ended")
                    return

                if self._is_disconnected is not None and await self._is_disconnected():
                    logger.info(f"[bridge] {self.run_id}: client disconnected")
                    return

                yield format_sse_event(EventType.MESSAGE, _decode(raw))
        finally:
            self.close()
