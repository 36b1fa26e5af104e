"""
Notionflow - A proxy and orchestration layer for the Notion API.

Notionflow exposes two surfaces in front of Notion:

- **Raw API**: Passthrough endpoints mirroring the Notion page, database,
  block, user and search operations
- **Flows**: Multi-step orchestrations (create page + blocks, clone a
  database schema, search and bulk-tag, AI-assisted markdown to pages)
  tracked as durable runs
- **Real-time updates**: Per-run broadcast channels fanning progress events
  out to WebSocket and Server-Sent Events observers
- **Monitoring**: Recent request logs and flow runs

Quick Start:
    $ export NOTIONFLOW_API_KEY=secret
    $ uvicorn notionflow.app.main:app

    >>> from notionflow.realtime import ChannelRegistry
    >>> registry = ChannelRegistry()
    >>> channel = registry.get("42")
"""

__version__ = "0.1.0"
__license__ = "MIT"

from notionflow.flows import FLOWS, FlowRunner
from notionflow.realtime import ChannelRegistry, ProgressEvent, RunChannel, StreamBridge
from notionflow.storage import RunStore

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Flows
    "FLOWS",
    "FlowRunner",
    # Real-time
    "ChannelRegistry",
    "ProgressEvent",
    "RunChannel",
    "StreamBridge",
    # Storage
    "RunStore",
]
