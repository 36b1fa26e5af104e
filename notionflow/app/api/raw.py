"""
Raw Notion passthrough endpoints.

One Notion call per request, made with the caller's ``x-notion-token``.
Any failure (invalid body or Notion error) is a 500 envelope carrying
the message.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from notionflow.app.auth import require_api_key, require_notion_token
from notionflow.app.dependencies import get_notion_factory
from notionflow.app.responses import error_response, success_response
from notionflow.flows import NotionFactory
from notionflow.integrations.notion import (
    AppendBlocksRequest,
    CreatePageRequest,
    NotionClient,
    QueryDatabaseRequest,
    SearchRequest,
    UpdatePageRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/raw",
    tags=["raw"],
    dependencies=[Depends(require_api_key)],
)

NotionCall = Callable[[NotionClient], Awaitable[dict[str, Any]]]


async def _proxy(token: str, factory: NotionFactory, call: NotionCall) -> JSONResponse:
    try:
        async with factory(token) as notion:
            return success_response(await call(notion))
    except Exception as e:
        logger.error(f"[raw] Notion call failed: {e}")
        return error_response(str(e) or type(e).__name__, 500)


# =============================================================================
# Pages
# =============================================================================


@router.get("/pages/{page_id}")
async def retrieve_page(
    page_id: str,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(token, factory, lambda notion: notion.retrieve_page(page_id))


@router.post("/pages")
async def create_page(
    request: Request,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    async def call(notion: NotionClient) -> dict[str, Any]:
        payload = CreatePageRequest.model_validate(await request.json())
        return await notion.create_page(payload.to_api_dict())

    return await _proxy(token, factory, call)


@router.patch("/pages/{page_id}")
async def update_page(
    page_id: str,
    request: Request,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    async def call(notion: NotionClient) -> dict[str, Any]:
        payload = UpdatePageRequest.model_validate(await request.json())
        return await notion.update_page(page_id, payload.to_api_dict())

    return await _proxy(token, factory, call)


# =============================================================================
# Databases
# =============================================================================


@router.get("/databases/{database_id}")
async def retrieve_database(
    database_id: str,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(token, factory, lambda notion: notion.retrieve_database(database_id))


@router.post("/databases/{database_id}/query")
async def query_database(
    database_id: str,
    request: Request,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    async def call(notion: NotionClient) -> dict[str, Any]:
        body = await request.body()
        payload = QueryDatabaseRequest.model_validate_json(body) if body else QueryDatabaseRequest()
        return await notion.query_database(database_id, payload.to_api_dict())

    return await _proxy(token, factory, call)


# =============================================================================
# Blocks
# =============================================================================


@router.get("/blocks/{block_id}")
async def retrieve_block(
    block_id: str,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(token, factory, lambda notion: notion.retrieve_block(block_id))


@router.get("/blocks/{block_id}/children")
async def list_block_children(
    block_id: str,
    start_cursor: str | None = None,
    page_size: int | None = None,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(
        token,
        factory,
        lambda notion: notion.list_block_children(
            block_id, start_cursor=start_cursor, page_size=page_size
        ),
    )


@router.patch("/blocks/{block_id}/children")
async def append_block_children(
    block_id: str,
    request: Request,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    async def call(notion: NotionClient) -> dict[str, Any]:
        payload = AppendBlocksRequest.model_validate(await request.json())
        return await notion.append_block_children(block_id, payload.children)

    return await _proxy(token, factory, call)


# =============================================================================
# Users
# =============================================================================


@router.get("/users")
async def list_users(
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(token, factory, lambda notion: notion.list_users())


@router.get("/users/{user_id}")
async def retrieve_user(
    user_id: str,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    return await _proxy(token, factory, lambda notion: notion.retrieve_user(user_id))


# =============================================================================
# Search
# =============================================================================


@router.post("/search")
async def search(
    request: Request,
    token: str = Depends(require_notion_token),
    factory: NotionFactory = Depends(get_notion_factory),
) -> JSONResponse:
    async def call(notion: NotionClient) -> dict[str, Any]:
        body = await request.body()
        payload = SearchRequest.model_validate_json(body) if body else SearchRequest()
        return await notion.search(payload.to_api_dict())

    return await _proxy(token, factory, call)
