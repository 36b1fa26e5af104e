"""
Relational tables for flow runs and request logs.

Both tables use an auto-increment integer primary key. Serialized
snapshots (input/output) are stored as JSON text so the stored value is
exactly what the flow produced.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    """Get current UTC time with timezone awareness."""
    return datetime.now(UTC)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class FlowStatus(str, Enum):
    """Lifecycle status of a flow run."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not FlowStatus.RUNNING


class FlowRun(SQLModel, table=True):
    """One execution of a flow."""

    __tablename__ = "flow_runs"

    id: Optional[int] = Field(default=None, primary_key=True)
    flow_name: str = Field(index=True)
    status: str = Field(default=FlowStatus.RUNNING.value, index=True)
    input_data: Optional[str] = Field(default=None, sa_column=Column(Text))
    output_data: Optional[str] = Field(default=None, sa_column=Column(Text))
    error_message: Optional[str] = Field(default=None, sa_column=Column(Text))
    started_at: datetime = Field(default_factory=_utc_now, index=True)
    completed_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the monitor API."""
        return {
            "id": self.id,
            "flow_name": self.flow_name,
            "status": self.status,
            "input_data": self.input_data,
            "output_data": self.output_data,
            "error_message": self.error_message,
            "started_at": _isoformat(self.started_at),
            "completed_at": _isoformat(self.completed_at),
        }


class RequestLog(SQLModel, table=True):
    """One HTTP request handled by the service."""

    __tablename__ = "request_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    path: str
    method: str
    status: int
    user_agent: Optional[str] = None
    duration_ms: Optional[float] = None
    timestamp: datetime = Field(default_factory=_utc_now, index=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the monitor API."""
        return {
            "id": self.id,
            "path": self.path,
            "method": self.method,
            "status": self.status,
            "user_agent": self.user_agent,
            "duration_ms": self.duration_ms,
            "timestamp": _isoformat(self.timestamp),
        }
