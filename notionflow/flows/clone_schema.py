"""
cloneDatabaseSchema: copy a database's property schema (no rows).
"""
from __future__ import annotations

from typing import Any

from notionflow.realtime import EventType

from .context import FlowContext
from .schemas import CloneDatabaseSchemaInput


def strip_property_ids(properties: dict[str, Any]) -> dict[str, Any]:
    """Drop the server-assigned ``id`` from every property definition."""
    return {
        name: {key: value for key, value in definition.items() if key != "id"}
        for name, definition in properties.items()
    }


async def clone_database_schema(ctx: FlowContext, inputs: CloneDatabaseSchemaInput) -> dict[str, Any]:
    source = await ctx.notion.retrieve_database(inputs.source_database_id)
    properties = strip_property_ids(source.get("properties") or {})
    ctx.publish(
        EventType.SCHEMA_RETRIEVED,
        sourceDatabaseId=inputs.source_database_id,
        propertyCount=len(properties),
    )

    new_database = await ctx.notion.create_database(
        {
            "parent": inputs.parent.model_dump(),
            "title": [{"text": {"content": inputs.title}}],
            "properties": properties,
        }
    )
    ctx.publish(EventType.DATABASE_CREATED, databaseId=new_database.get("id"))

    return {"source_database": source, "new_database": new_database}
