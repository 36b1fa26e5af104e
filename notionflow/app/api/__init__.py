"""HTTP and WebSocket routers for Notionflow."""

from .flows import router as flows_router
from .monitor import router as monitor_router
from .raw import router as raw_router
from .stream import router as stream_router

__all__ = ["flows_router", "monitor_router", "raw_router", "stream_router"]
