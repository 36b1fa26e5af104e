"""Request log store: written by the request middleware, read by the monitor."""

from __future__ import annotations

import logging

from sqlmodel import col, select

from .database import Database
from .models import RequestLog

logger = logging.getLogger(__name__)


class RequestLogStore:
    """Write-only from request logging, read-only from monitoring."""

    def __init__(self, database: Database):
        self._db = database

    async def log_request(
        self,
        *,
        path: str,
        method: str,
        status: int,
        user_agent: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        entry = RequestLog(
            path=path,
            method=method,
            status=status,
            user_agent=user_agent,
            duration_ms=duration_ms,
        )
        async with self._db.session() as session:
            session.add(entry)
            await session.commit()

    async def list_recent(self, limit: int = 100) -> list[RequestLog]:
        """Most recent requests first."""
        statement = (
            select(RequestLog)
            .order_by(col(RequestLog.timestamp).desc(), col(RequestLog.id).desc())
            .limit(limit)
        )
        async with self._db.session() as session:
            result = await session.exec(statement)
            return list(result.all())
