"""
Notion API Client for Notionflow.

This client provides async access to Notion's REST API for pages,
databases, blocks, users and search. It handles authentication, the
Notion-Version header and error mapping.

Usage:
    async with NotionClient(NotionConfig(token="secret_xxx")) as notion:
        page = await notion.create_page({
            "parent": {"page_id": "..."},
            "properties": {"title": {"title": [{"text": {"content": "Hello"}}]}},
        })
        await notion.append_block_children(page["id"], [paragraph])

API Reference:
    https://developers.notion.com/reference/intro
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from notionflow.integrations.base import IntegrationClient, IntegrationConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class NotionConfig(IntegrationConfig):
    """Configuration for Notion client."""

    # Required
    token: str = ""

    base_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"

    def __post_init__(self):
        """Validate configuration."""
        if not self.token:
            raise ValueError("Notion token is required")


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in payload.items() if value is not None}


# =============================================================================
# Client
# =============================================================================


class NotionClient(IntegrationClient):
    """
    Async client for the Notion API.

    Provides methods for:
    - Pages (retrieve, create, update)
    - Databases (retrieve, query, create)
    - Blocks (retrieve, list children, append children)
    - Users (list, retrieve)
    - Search

    Each instance carries exactly one integration token. Flows and raw
    endpoints build a fresh client per request.
    """

    def __init__(self, config: NotionConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        """
        Initialize Notion client.

        Args:
            config: Notion configuration with the caller's token
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(config, transport=transport)
        self._config: NotionConfig = config

    @property
    def name(self) -> str:
        """Integration name."""
        return "notion"

    def _get_auth_headers(self) -> dict[str, str]:
        """Return Notion authentication headers."""
        return {"Authorization": f"Bearer {self._config.token}"}

    def _default_headers(self) -> dict[str, str]:
        return {"Notion-Version": self._config.notion_version}

    def _error_message(self, response: httpx.Response) -> tuple[str, str | None]:
        """Notion errors look like {"object": "error", "code": ..., "message": ...}."""
        try:
            body = response.json()
        except ValueError:
            return super()._error_message(response)

        if isinstance(body, dict) and body.get("message"):
            return str(body["message"]), body.get("code")
        return super()._error_message(response)

    async def _json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await self._request(method, path, params=params, json=json)
        return response.json()

    # =========================================================================
    # Pages
    # =========================================================================

    async def retrieve_page(self, page_id: str) -> dict[str, Any]:
        return await self._json("GET", f"/pages/{page_id}")

    async def create_page(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create a page.

        Args:
            payload: parent, properties and optional children/icon/cover

        Returns:
            The created page object
        """
        page = await self._json("POST", "/pages", json=_compact(payload))
        logger.info(f"[notion] Created page: {page.get('id')}")
        return page

    async def update_page(self, page_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update page properties, archive state, icon or cover."""
        page = await self._json("PATCH", f"/pages/{page_id}", json=_compact(payload))
        logger.info(f"[notion] Updated page: {page_id}")
        return page

    # =========================================================================
    # Databases
    # =========================================================================

    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        return await self._json("GET", f"/databases/{database_id}")

    async def query_database(
        self,
        database_id: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        return await self._json(
            "POST", f"/databases/{database_id}/query", json=_compact(payload or {})
        )

    async def create_database(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create a database.

        Args:
            payload: parent, title and the property schema

        Returns:
            The created database object
        """
        database = await self._json("POST", "/databases", json=_compact(payload))
        logger.info(f"[notion] Created database: {database.get('id')}")
        return database

    # =========================================================================
    # Blocks
    # =========================================================================

    async def retrieve_block(self, block_id: str) -> dict[str, Any]:
        return await self._json("GET", f"/blocks/{block_id}")

    async def list_block_children(
        self,
        block_id: str,
        *,
        start_cursor: str | None = None,
        page_size: int | None = None,
    ) -> dict[str, Any]:
        params = _compact({"start_cursor": start_cursor, "page_size": page_size})
        return await self._json(
            "GET", f"/blocks/{block_id}/children", params=params or None
        )

    async def append_block_children(
        self,
        block_id: str,
        children: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """
        Append child blocks to a page or block.

        Args:
            block_id: Parent page or block id
            children: Notion block objects

        Returns:
            Notion's list response with the appended blocks
        """
        result = await self._json(
            "PATCH", f"/blocks/{block_id}/children", json={"children": children}
        )
        logger.info(f"[notion] Appended {len(children)} blocks to {block_id}")
        return result

    # =========================================================================
    # Users
    # =========================================================================

    async def list_users(self) -> dict[str, Any]:
        return await self._json("GET", "/users")

    async def retrieve_user(self, user_id: str) -> dict[str, Any]:
        return await self._json("GET", f"/users/{user_id}")

    # =========================================================================
    # Search
    # =========================================================================

    async def search(self, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Search pages and databases shared with the integration.

        Args:
            payload: query, filter, sort and pagination fields

        Returns:
            Notion's list response ({"object": "list", "results": [...]})
        """
        return await self._json("POST", "/search", json=_compact(payload or {}))


def create_notion_client(
    token: str,
    *,
    base_url: str = "https://api.notion.com/v1",
    notion_version: str = "2022-06-28",
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NotionClient:
    """
    Create a Notion client scoped to a single caller's token.

    Args:
        token: Notion integration token from the request
        base_url: API base URL
        notion_version: Notion-Version header
        timeout: Request timeout in seconds
        transport: Optional httpx transport (used by tests)

    Returns:
        A new NotionClient (use as an async context manager)
    """
    return NotionClient(
        NotionConfig(
            token=token,
            base_url=base_url,
            notion_version=notion_version,
            timeout=timeout,
        ),
        transport=transport,
    )
