"""
searchAndTag: search, then set one property on every page found.

A failed page update is reported and skipped; the run still completes.
"""
from __future__ import annotations

from typing import Any

from notionflow.realtime import EventType

from .context import FlowContext
from .schemas import SearchAndTagInput


async def search_and_tag(ctx: FlowContext, inputs: SearchAndTagInput) -> dict[str, Any]:
    payload: dict[str, Any] = {"query": inputs.query}
    if inputs.filter is not None:
        payload["filter"] = inputs.filter.model_dump(exclude_none=True)

    search_results = await ctx.notion.search(payload)
    results = search_results.get("results") or []
    ctx.publish(EventType.SEARCH_COMPLETED, resultCount=len(results))

    properties = {inputs.property_name: inputs.property_value}
    updated_pages: list[dict[str, Any]] = []
    failed = 0

    for result in results:
        if result.get("object") != "page":
            continue

        page_id = result.get("id")
        try:
            updated = await ctx.notion.update_page(result["id"], {"properties": properties})
        except Exception as e:
            failed += 1
            error = str(e) or type(e).__name__
            ctx.log.item_failed(page_id, error)
            ctx.publish(EventType.PAGE_UPDATE_FAILED, pageId=page_id, error=error)
            continue

        updated_pages.append(updated)
        ctx.publish(EventType.PAGE_TAGGED, pageId=page_id)

    ctx.summary = {"updatedCount": len(updated_pages), "failedCount": failed}
    return {
        "search_results": search_results,
        "updated_count": len(updated_pages),
        "updated_pages": updated_pages,
    }
