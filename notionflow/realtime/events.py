"""
Progress events for flow runs.

A progress event is a tagged record: a shared base shape
(type, flowRunId, timestamp) plus an open payload map specific to the
milestone. New milestone tags need no schema change.

The timestamp is assigned by the run channel when it processes the
event, never by the sender, so every observer of a channel sees the
same timestamps in the same order.

Wire format (one JSON object):
    {"type": "page_created", "flowRunId": 42, "pageId": "...",
     "flow": "createPageWithBlocks", "timestamp": "2026-01-02T10:30:00+00:00"}
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

RESERVED_KEYS = frozenset({"type", "flowRunId", "timestamp"})


class EventType:
    """Milestone tags emitted by the built-in flows (not an exhaustive list)."""

    # Stream bridge
    CONNECTED = "connected"
    MESSAGE = "message"

    # Run lifecycle
    FLOW_STARTED = "flow_started"
    FLOW_COMPLETED = "flow_completed"
    FLOW_FAILED = "flow_failed"

    # Pages and blocks
    PAGE_CREATION_STARTED = "page_creation_started"
    PAGE_CREATED = "page_created"
    BLOCK_CONVERSION_STARTED = "block_conversion_started"
    BLOCKS_APPENDED = "blocks_appended"

    # Databases
    SCHEMA_RETRIEVED = "schema_retrieved"
    DATABASE_CREATED = "database_created"

    # Search and tag
    SEARCH_COMPLETED = "search_completed"
    PAGE_TAGGED = "page_tagged"
    PAGE_UPDATE_FAILED = "page_update_failed"

    # AI planning
    PLANNING_COMPLETED = "planning_completed"


class InvalidEventError(ValueError):
    """Raised when a message cannot be read as a progress event."""


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """
    One milestone notification for a run.

    Attributes:
        type: Free-form milestone tag
        flow_run_id: Owning run id (also the channel address)
        payload: Milestone-specific fields
        timestamp: Set by the channel at post time
    """

    type: str
    flow_run_id: int | str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None

    def stamped(self, now: datetime | None = None) -> "ProgressEvent":
        """Return a copy carrying the channel's processing time."""
        return replace(self, timestamp=now or _utc_now())

    def to_message(self) -> dict[str, Any]:
        """Flatten to the wire shape."""
        message: dict[str, Any] = {
            "type": self.type,
            "flowRunId": self.flow_run_id,
            **self.payload,
        }
        if self.timestamp is not None:
            message["timestamp"] = self.timestamp.isoformat()
        return message

    @classmethod
    def from_message(
        cls,
        message: Mapping[str, Any],
        *,
        default_run_id: int | str | None = None,
    ) -> "ProgressEvent":
        """
        Read a wire-shaped mapping.

        Any incoming timestamp is dropped; the channel assigns its own.

        Args:
            message: Mapping with at least a string "type"
            default_run_id: Run id used when the message has none

        Raises:
            InvalidEventError: If "type" is missing or not a string, or no
                run id is available
        """
        event_type = message.get("type")
        if not isinstance(event_type, str) or not event_type:
            raise InvalidEventError("Progress event requires a string 'type'")

        run_id = message.get("flowRunId", default_run_id)
        if run_id is None:
            raise InvalidEventError("Progress event requires a 'flowRunId'")

        payload = {k: v for k, v in message.items() if k not in RESERVED_KEYS}
        return cls(type=event_type, flow_run_id=run_id, payload=payload)
