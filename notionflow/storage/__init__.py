"""
Notionflow Storage

Relational persistence for flow runs and request logs (SQLModel over
SQLAlchemy asyncio).

Tables:
- flow_runs: id, flow_name, status, input_data, output_data,
  error_message, started_at, completed_at
- request_logs: id, path, method, status, user_agent, duration_ms, timestamp
"""

from .database import Database
from .models import FlowRun, FlowStatus, RequestLog
from .request_logs import RequestLogStore
from .runs import RunNotFoundError, RunStateError, RunStore, RunStoreError

__all__ = [
    "Database",
    "FlowRun",
    "FlowStatus",
    "RequestLog",
    "RequestLogStore",
    "RunNotFoundError",
    "RunStateError",
    "RunStore",
    "RunStoreError",
]
