"""
orchestrateMarkdownToPages: AI-assisted markdown to Notion pages.

Two model calls per document:
    1. Planning: split the markdown into logical pages
    2. Conversion (per page): markdown -> Notion block objects

Pages are created in plan order. Any failure stops the remaining pages.
"""
from __future__ import annotations

from typing import Any

from notionflow.realtime import EventType
from notionflow.utils.json_parser import parse_json_as

from .context import FlowContext
from .schemas import MarkdownToPagesInput, PagePlan, title_property

PLANNER_PROMPT = (
    "You are a content planner. Split the markdown you are given into logical "
    "pages (for example at top-level headings or --- separators). For each page, "
    "extract its title and its full markdown content. Respond ONLY with a JSON "
    'array of objects of the form {"title": string, "content": string}.'
)

CONVERTER_PROMPT = (
    "You are a markdown-to-Notion converter. Convert the markdown you are given "
    "into a JSON array of Notion API block objects, using standard block types "
    "(heading_1, heading_2, heading_3, paragraph, bulleted_list_item, "
    "numbered_list_item, code, quote, divider). Respond ONLY with the JSON array."
)

PLANNING_ERROR = "Failed to parse AI planning response"
BLOCK_ERROR = "Failed to parse AI block response"


async def markdown_to_pages(ctx: FlowContext, inputs: MarkdownToPagesInput) -> dict[str, Any]:
    plan_text = await ctx.complete_text(PLANNER_PROMPT, inputs.markdown_content, inputs.ai_model)
    plans = parse_json_as(plan_text, list[PagePlan], PLANNING_ERROR)
    ctx.publish(EventType.PLANNING_COMPLETED, pageCount=len(plans))

    created_pages: list[dict[str, str]] = []
    for plan in plans:
        ctx.publish(EventType.PAGE_CREATION_STARTED, title=plan.title)
        page = await ctx.notion.create_page(
            {
                "parent": {"page_id": inputs.base_parent_page_id},
                "properties": title_property(plan.title),
            }
        )
        page_id = page["id"]
        ctx.publish(EventType.PAGE_CREATED, pageId=page_id, title=plan.title)

        ctx.publish(EventType.BLOCK_CONVERSION_STARTED, pageId=page_id)
        blocks_text = await ctx.complete_text(CONVERTER_PROMPT, plan.content, inputs.ai_model)
        blocks = parse_json_as(blocks_text, list[dict[str, Any]], BLOCK_ERROR)

        if blocks:
            await ctx.notion.append_block_children(page_id, blocks)
            ctx.publish(EventType.BLOCKS_APPENDED, pageId=page_id, blockCount=len(blocks))

        created_pages.append({"pageId": page_id, "title": plan.title})

    ctx.summary = {"createdCount": len(created_pages)}
    return {"createdPages": created_pages}
