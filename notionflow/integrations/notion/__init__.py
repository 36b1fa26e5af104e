"""
Notion Integration for Notionflow.

Provides:
- NotionClient: async REST client scoped to one integration token
- Request schemas for the raw passthrough endpoints

Usage:
    from notionflow.integrations.notion import create_notion_client

    async with create_notion_client("secret_xxx") as notion:
        results = await notion.search({"query": "Roadmap"})
"""

from notionflow.integrations.notion.client import NotionClient, NotionConfig, create_notion_client
from notionflow.integrations.notion.schemas import (
    AppendBlocksRequest,
    CreatePageRequest,
    PageParent,
    Parent,
    QueryDatabaseRequest,
    SearchFilter,
    SearchRequest,
    UpdatePageRequest,
)

__all__ = [
    # Client
    "NotionClient",
    "NotionConfig",
    "create_notion_client",
    # Schemas
    "AppendBlocksRequest",
    "CreatePageRequest",
    "PageParent",
    "Parent",
    "QueryDatabaseRequest",
    "SearchFilter",
    "SearchRequest",
    "UpdatePageRequest",
]
