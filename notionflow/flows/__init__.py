"""
Notionflow Flows.

Multi-step orchestrations tracked as durable runs:

- createPageWithBlocks: create page, append blocks
- cloneDatabaseSchema: retrieve schema, create database
- searchAndTag: search, update each page (per-page failures tolerated)
- orchestrateMarkdownToPages: AI plan, then per page create + convert + append

FLOWS maps each flow name to its FlowDefinition; FlowRunner executes one.
"""

from .clone_schema import clone_database_schema, strip_property_ids
from .context import FlowContext, LLMUnavailableError
from .create_page import create_page_with_blocks
from .markdown_to_pages import markdown_to_pages
from .observability import FlowLogger, JSONLogger
from .runner import (
    FlowDefinition,
    FlowOutcome,
    FlowRunner,
    NotionFactory,
    notion_factory_from_settings,
)
from .schemas import (
    CloneDatabaseSchemaInput,
    CreatePageWithBlocksInput,
    MarkdownToPagesInput,
    PagePlan,
    SearchAndTagInput,
    input_snapshot,
)
from .search_and_tag import search_and_tag

FLOWS: dict[str, FlowDefinition] = {
    definition.name: definition
    for definition in (
        FlowDefinition(
            name="createPageWithBlocks",
            input_model=CreatePageWithBlocksInput,
            execute=create_page_with_blocks,
            description="Create a page and append child blocks",
        ),
        FlowDefinition(
            name="cloneDatabaseSchema",
            input_model=CloneDatabaseSchemaInput,
            execute=clone_database_schema,
            description="Create a new database with another database's property schema",
        ),
        FlowDefinition(
            name="searchAndTag",
            input_model=SearchAndTagInput,
            execute=search_and_tag,
            description="Search and set a property on every page found",
        ),
        FlowDefinition(
            name="orchestrateMarkdownToPages",
            input_model=MarkdownToPagesInput,
            execute=markdown_to_pages,
            description="Split markdown into pages with AI and create them",
        ),
    )
}

__all__ = [
    "FLOWS",
    # Runner
    "FlowContext",
    "FlowDefinition",
    "FlowOutcome",
    "FlowRunner",
    "LLMUnavailableError",
    "NotionFactory",
    "notion_factory_from_settings",
    # Logging
    "FlowLogger",
    "JSONLogger",
    # Schemas
    "CloneDatabaseSchemaInput",
    "CreatePageWithBlocksInput",
    "MarkdownToPagesInput",
    "PagePlan",
    "SearchAndTagInput",
    "input_snapshot",
    # Executors
    "clone_database_schema",
    "create_page_with_blocks",
    "markdown_to_pages",
    "search_and_tag",
    "strip_property_ids",
]
