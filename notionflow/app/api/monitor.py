"""
Monitoring endpoints: recent request logs and flow runs, newest first.
"""
from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from notionflow.app.auth import require_api_key
from notionflow.app.dependencies import get_request_log_store, get_run_store, get_settings
from notionflow.app.responses import success_response
from notionflow.config import AppSettings
from notionflow.storage import RequestLogStore, RunStore

router = APIRouter(
    prefix="/monitor",
    tags=["monitor"],
    dependencies=[Depends(require_api_key)],
)

LIST_DEFAULT_LIMIT = 100


def clamp_limit(raw: str | None, default: int, maximum: int) -> int:
    """
    Parse a ``limit`` query value.

    Missing or non-integer values give ``default``; the result is
    clamped to [1, maximum].
    """
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        value = default
    return max(1, min(value, maximum))


@router.get("")
async def monitor(
    limit: str | None = None,
    settings: AppSettings = Depends(get_settings),
    run_store: RunStore = Depends(get_run_store),
    log_store: RequestLogStore = Depends(get_request_log_store),
) -> JSONResponse:
    """Recent request logs and flow runs."""
    n = clamp_limit(limit, settings.monitor_default_limit, settings.monitor_max_limit)
    logs, runs = await asyncio.gather(log_store.list_recent(n), run_store.list_recent(n))
    return success_response(
        {
            "logs": [entry.to_dict() for entry in logs],
            "flowRuns": [run.to_dict() for run in runs],
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )


@router.get("/logs")
async def monitor_logs(
    limit: str | None = None,
    settings: AppSettings = Depends(get_settings),
    log_store: RequestLogStore = Depends(get_request_log_store),
) -> JSONResponse:
    n = clamp_limit(limit, LIST_DEFAULT_LIMIT, settings.monitor_max_limit)
    logs = await log_store.list_recent(n)
    return success_response([entry.to_dict() for entry in logs])


@router.get("/flows")
async def monitor_flows(
    limit: str | None = None,
    settings: AppSettings = Depends(get_settings),
    run_store: RunStore = Depends(get_run_store),
) -> JSONResponse:
    n = clamp_limit(limit, LIST_DEFAULT_LIMIT, settings.monitor_max_limit)
    runs = await run_store.list_recent(n)
    return success_response([run.to_dict() for run in runs])
