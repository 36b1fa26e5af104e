"""
Pydantic schemas for Notion request bodies.

These mirror the raw passthrough endpoints. Notion objects themselves
(pages, blocks, property values) are open JSON and are passed through
as dicts.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class NotionRequest(BaseModel):
    """Base for request bodies sent to Notion."""

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to Notion API format, excluding None values."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Shared
# =============================================================================


class Parent(BaseModel):
    """Parent database or page."""

    database_id: str | None = None
    page_id: str | None = None


class PageParent(BaseModel):
    """Parent page (databases can only be created under a page)."""

    page_id: str


class SearchFilter(BaseModel):
    """Filter search results by object type."""

    value: Literal["page", "database"] | None = None
    property: Literal["object"] | None = None


class SearchSort(BaseModel):
    direction: Literal["ascending", "descending"]
    timestamp: Literal["last_edited_time"]


# =============================================================================
# Pages
# =============================================================================


class CreatePageRequest(NotionRequest):
    parent: Parent = Field(..., description="Parent database or page")
    properties: dict[str, Any] = Field(..., description="Page properties")
    children: list[Any] | None = Field(None, description="Child blocks")
    icon: Any = Field(None, description="Page icon")
    cover: Any = Field(None, description="Page cover image")


class UpdatePageRequest(NotionRequest):
    properties: dict[str, Any] | None = Field(None, description="Page properties to update")
    archived: bool | None = Field(None, description="Whether to archive the page")
    icon: Any = Field(None, description="Page icon")
    cover: Any = Field(None, description="Page cover image")


# =============================================================================
# Databases
# =============================================================================


class QueryDatabaseRequest(NotionRequest):
    filter: Any = Field(None, description="Filter object for the query")
    sorts: list[Any] | None = Field(None, description="Sort criteria")
    start_cursor: str | None = Field(None, description="Pagination cursor")
    page_size: int | None = Field(None, ge=1, le=100, description="Number of results per page")


# =============================================================================
# Blocks
# =============================================================================


class AppendBlocksRequest(NotionRequest):
    children: list[Any] = Field(..., description="Child blocks to append")


# =============================================================================
# Search
# =============================================================================


class SearchRequest(NotionRequest):
    query: str | None = Field(None, description="Search query string")
    filter: SearchFilter | None = Field(None, description="Filter by object type")
    sort: SearchSort | None = Field(None, description="Sort criteria")
    start_cursor: str | None = Field(None, description="Pagination cursor")
    page_size: int | None = Field(None, ge=1, le=100, description="Number of results per page")
