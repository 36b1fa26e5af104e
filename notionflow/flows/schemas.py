"""
Input schemas for Notionflow flows.

Every flow body carries the caller's Notion token; it is used to build
that invocation's client and is never persisted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from notionflow.integrations.notion.schemas import PageParent, Parent, SearchFilter

REDACTED_FIELDS = frozenset({"notion_token"})


def input_snapshot(body: Any) -> dict[str, Any] | None:
    """Request body as stored on the run, without credentials."""
    if not isinstance(body, dict):
        return None
    return {key: value for key, value in body.items() if key not in REDACTED_FIELDS}


def title_property(title: str) -> dict[str, Any]:
    """Notion title property value for a plain-text title."""
    return {"title": [{"text": {"content": title}}]}


class FlowInput(BaseModel):
    notion_token: str = Field(..., min_length=1, description="Notion integration token")


class PageTargetParent(Parent):
    @model_validator(mode="after")
    def _require_target(self) -> "PageTargetParent":
        if not self.database_id and not self.page_id:
            raise ValueError("parent requires database_id or page_id")
        return self


class CreatePageWithBlocksInput(FlowInput):
    parent: PageTargetParent
    title: str = Field(..., min_length=1)
    properties: dict[str, Any] | None = None
    blocks: list[dict[str, Any]] | None = None
    icon: Any = None
    cover: Any = None


class CloneDatabaseSchemaInput(FlowInput):
    source_database_id: str = Field(..., min_length=1)
    parent: PageParent
    title: str = Field(..., min_length=1)


class SearchAndTagInput(FlowInput):
    query: str
    property_name: str = Field(..., min_length=1)
    property_value: Any = Field(..., description="Notion property value applied to each page")
    filter: SearchFilter | None = None


class MarkdownToPagesInput(FlowInput):
    markdown_content: str = Field(..., min_length=1)
    base_parent_page_id: str = Field(..., min_length=1)
    ai_model: str | None = None


class PagePlan(BaseModel):
    """One logical page proposed by the planning model."""

    title: str
    content: str
