"""
Real-time progress delivery for Notionflow.

- ProgressEvent: tagged milestone record
- RunChannel / ChannelRegistry: per-run broadcast channels
- StreamBridge: channel -> Server-Sent Events adapter
- ProgressPublisher: ordered, non-blocking posting for a running flow
"""

from .bridge import SSE_HEADERS, BridgeHandshakeError, StreamBridge, format_sse_event
from .channel import (
    ChannelClosedError,
    ChannelConnection,
    ChannelRegistry,
    Observer,
    RunChannel,
)
from .events import EventType, InvalidEventError, ProgressEvent
from .publisher import ProgressPublisher

__all__ = [
    # Events
    "EventType",
    "InvalidEventError",
    "ProgressEvent",
    # Channels
    "ChannelClosedError",
    "ChannelConnection",
    "ChannelRegistry",
    "Observer",
    "RunChannel",
    # Bridge
    "SSE_HEADERS",
    "BridgeHandshakeError",
    "StreamBridge",
    "format_sse_event",
    # Publisher
    "ProgressPublisher",
]
