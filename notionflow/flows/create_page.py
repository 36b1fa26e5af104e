"""
createPageWithBlocks: create a page, then append its blocks.
"""
from __future__ import annotations

from typing import Any

from notionflow.realtime import EventType

from .context import FlowContext
from .schemas import CreatePageWithBlocksInput, title_property


async def create_page_with_blocks(ctx: FlowContext, inputs: CreatePageWithBlocksInput) -> dict[str, Any]:
    """
    Create one page with a synthesized title and optional child blocks.

    Caller properties are merged under the title; a caller-supplied
    ``title`` key never replaces it.

    Returns:
        {"page": <page>, "blocks": <append response or None>}
    """
    properties = {**(inputs.properties or {}), **title_property(inputs.title)}

    page = await ctx.notion.create_page(
        {
            "parent": inputs.parent.model_dump(exclude_none=True),
            "properties": properties,
            "icon": inputs.icon,
            "cover": inputs.cover,
        }
    )
    page_id = page["id"]
    ctx.publish(EventType.PAGE_CREATED, pageId=page_id)

    blocks = None
    if inputs.blocks:
        blocks = await ctx.notion.append_block_children(page_id, inputs.blocks)
        ctx.publish(EventType.BLOCKS_APPENDED, pageId=page_id, blockCount=len(inputs.blocks))

    return {"page": page, "blocks": blocks}
