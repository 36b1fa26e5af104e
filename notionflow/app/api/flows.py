"""
Flow endpoints for Notionflow.

Each endpoint records a run, executes the flow and answers with the
envelope: 200 with ``data.flowRunId`` on success, 500 with ``error`` on
any failure (including invalid input). Progress delivery finishes in a
background task after the response is sent.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from notionflow.app.auth import require_api_key
from notionflow.app.dependencies import get_flow_runner
from notionflow.app.responses import error_response, success_response
from notionflow.flows import FLOWS, FlowRunner

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/flows",
    tags=["flows"],
    dependencies=[Depends(require_api_key)],
)


async def _read_body(request: Request) -> Any:
    """Decoded JSON body, or None when the body is not JSON."""
    try:
        return await request.json()
    except ValueError:
        logger.warning(f"[flows] Non-JSON body for {request.url.path}")
        return None


async def _run_flow(
    name: str,
    request: Request,
    background_tasks: BackgroundTasks,
    runner: FlowRunner,
) -> JSONResponse:
    body = await _read_body(request)
    outcome, publisher = await runner.run(FLOWS[name], body)
    background_tasks.add_task(publisher.aclose)

    if outcome.success:
        return success_response(outcome.data)
    return error_response(outcome.error or "Flow failed", outcome.status_code)


@router.post("/createPageWithBlocks")
async def create_page_with_blocks(
    request: Request,
    background_tasks: BackgroundTasks,
    runner: FlowRunner = Depends(get_flow_runner),
) -> JSONResponse:
    """Create a page and append child blocks."""
    return await _run_flow("createPageWithBlocks", request, background_tasks, runner)


@router.post("/cloneDatabaseSchema")
async def clone_database_schema(
    request: Request,
    background_tasks: BackgroundTasks,
    runner: FlowRunner = Depends(get_flow_runner),
) -> JSONResponse:
    """Create a database with another database's property schema."""
    return await _run_flow("cloneDatabaseSchema", request, background_tasks, runner)


@router.post("/searchAndTag")
async def search_and_tag(
    request: Request,
    background_tasks: BackgroundTasks,
    runner: FlowRunner = Depends(get_flow_runner),
) -> JSONResponse:
    """Search, then set one property on every page found."""
    return await _run_flow("searchAndTag", request, background_tasks, runner)


@router.post("/orchestrateMarkdownToPages")
async def orchestrate_markdown_to_pages(
    request: Request,
    background_tasks: BackgroundTasks,
    runner: FlowRunner = Depends(get_flow_runner),
) -> JSONResponse:
    """Split markdown into pages with an LLM and create them."""
    return await _run_flow("orchestrateMarkdownToPages", request, background_tasks, runner)
