"""
Request authentication for Notionflow.

- require_api_key: bearer key for /api and /monitor
- require_stream_key: bearer key or ``apiKey`` query parameter (SSE
  clients such as EventSource cannot set headers)
- require_notion_token: caller's Notion token for raw endpoints

An empty NOTIONFLOW_API_KEY disables the bearer checks.
"""

from __future__ import annotations

import logging
import re
import secrets

from fastapi import Depends, Header, Query

from notionflow.config import AppSettings

from .dependencies import get_settings
from .responses import NotionflowHTTPError

logger = logging.getLogger(__name__)

_BEARER = re.compile(r"^Bearer\s+", re.IGNORECASE)


def _matches(candidate: str, settings: AppSettings) -> bool:
    expected = settings.api_key.get_secret_value()
    return secrets.compare_digest(candidate.encode(), expected.encode())


def _bearer_token(authorization: str) -> str:
    return _BEARER.sub("", authorization, count=1)


async def require_api_key(
    authorization: str | None = Header(default=None),
    settings: AppSettings = Depends(get_settings),
) -> None:
    if not settings.auth_enabled:
        logger.debug("[auth] API key not set - authentication disabled")
        return

    if not authorization:
        raise NotionflowHTTPError(401, "Unauthorized - Missing Authorization header")

    if not _matches(_bearer_token(authorization), settings):
        raise NotionflowHTTPError(401, "Unauthorized - Invalid API key")


async def require_stream_key(
    authorization: str | None = Header(default=None),
    api_key: str | None = Query(default=None, alias="apiKey"),
    settings: AppSettings = Depends(get_settings),
) -> None:
    if not settings.auth_enabled:
        return

    if authorization and _matches(_bearer_token(authorization), settings):
        return
    if api_key and _matches(api_key, settings):
        return

    raise NotionflowHTTPError(401, "Unauthorized")


async def require_notion_token(
    x_notion_token: str | None = Header(default=None, alias="x-notion-token"),
) -> str:
    if not x_notion_token:
        raise NotionflowHTTPError(400, "Missing x-notion-token header")
    return x_notion_token
