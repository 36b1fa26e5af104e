"""
Run Store for Notionflow.

Persistent record of each flow invocation. A run is created with status
``running`` before any remote side effect, then moved exactly once to
``completed`` or ``failed``.

Transitions are single guarded UPDATE statements keyed by run id, so
concurrent flows never read-modify-write each other's rows.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import update
from sqlmodel import col, select

from .database import Database
from .models import FlowRun, FlowStatus

logger = logging.getLogger(__name__)


class RunStoreError(Exception):
    """Base exception for run store errors."""


class RunNotFoundError(RunStoreError):
    """Raised when a run id does not exist."""

    def __init__(self, run_id: int):
        super().__init__(f"Flow run {run_id} not found")
        self.run_id = run_id


class RunStateError(RunStoreError):
    """Raised when a transition is attempted out of a terminal state."""

    def __init__(self, run_id: int, current: str, target: FlowStatus):
        super().__init__(
            f"Flow run {run_id} cannot move from '{current}' to '{target.value}'"
        )
        self.run_id = run_id
        self.current = current
        self.target = target


def serialize_snapshot(value: Any) -> str | None:
    """Serialize an input/output snapshot to JSON text."""
    if value is None:
        return None
    return json.dumps(value, default=str)


class RunStore:
    """
    Flow run persistence.

    Operations:
    - create(): insert a running record, return its id
    - complete(): running -> completed with output snapshot
    - fail(): running -> failed with error message
    - list_recent(): newest started_at first

    No operation ever updates flow_name, started_at or id.
    """

    def __init__(self, database: Database):
        self._db = database

    async def create(self, flow_name: str, input_data: Any = None) -> int:
        """
        Insert a new run with status=running.

        Args:
            flow_name: Flow that owns the run
            input_data: Optional request snapshot (serialized to JSON)

        Returns:
            The new run id
        """
        run = FlowRun(
            flow_name=flow_name,
            status=FlowStatus.RUNNING.value,
            input_data=serialize_snapshot(input_data),
        )
        async with self._db.session() as session:
            session.add(run)
            await session.commit()
            await session.refresh(run)

        logger.info(f"[run-store] Created run {run.id} for {flow_name}")
        return run.id

    async def complete(self, run_id: int, output_data: Any) -> None:
        """Mark a running run as completed with its result snapshot."""
        await self._transition(
            run_id,
            FlowStatus.COMPLETED,
            output_data=serialize_snapshot(output_data),
        )

    async def fail(self, run_id: int, error_message: str) -> None:
        """Mark a running run as failed with a human-readable cause."""
        await self._transition(run_id, FlowStatus.FAILED, error_message=error_message)

    async def get(self, run_id: int) -> FlowRun | None:
        async with self._db.session() as session:
            return await session.get(FlowRun, run_id)

    async def list_recent(self, limit: int = 50) -> list[FlowRun]:
        """
        List the most recent runs.

        Args:
            limit: Maximum number of runs

        Returns:
            Runs ordered by started_at descending (id breaks ties)
        """
        statement = (
            select(FlowRun)
            .order_by(col(FlowRun.started_at).desc(), col(FlowRun.id).desc())
            .limit(limit)
        )
        async with self._db.session() as session:
            result = await session.exec(statement)
            return list(result.all())

    async def _transition(self, run_id: int, target: FlowStatus, **values: Any) -> None:
        """
        Apply one guarded UPDATE.

        The statement runs on an engine connection, not through
        sqlmodel's ``session.execute``, which is deprecated for
        non-select statements.
        """
        statement = (
            update(FlowRun)
            .where(col(FlowRun.id) == run_id, col(FlowRun.status) == FlowStatus.RUNNING.value)
            .values(status=target.value, completed_at=datetime.now(UTC), **values)
        )
        async with self._db.engine.begin() as conn:
            result = await conn.execute(statement)
            updated = result.rowcount

        if updated == 1:
            logger.info(f"[run-store] Run {run_id} -> {target.value}")
            return

        existing = await self.get(run_id)
        if existing is None:
            raise RunNotFoundError(run_id)
        raise RunStateError(run_id, existing.status, target)
