"""
Flow Runner for Notionflow.

The one lifecycle shared by every flow:

    create run (status=running, redacted input snapshot)
      -> publish flow_started
      -> validate input
      -> build a Notion client for the caller's token
      -> execute the flow's steps (each milestone published)
      -> complete run, publish flow_completed      (success)
      or fail run, publish flow_failed             (any exception)

Everything after the initial create is inside a single catch-all
boundary, so a flow never raises to the transport layer. Validation
happens after create, so malformed requests are recorded as failed runs.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from notionflow.config import AppSettings
from notionflow.integrations.notion import NotionClient, create_notion_client
from notionflow.providers.llm import LLMProvider
from notionflow.realtime import ChannelRegistry, EventType, ProgressPublisher
from notionflow.storage import RunStore
from notionflow.utils.background import BackgroundWork

from .context import FlowContext
from .observability import FlowLogger
from .schemas import input_snapshot

logger = logging.getLogger(__name__)

FlowExecutor = Callable[[FlowContext, Any], Awaitable[dict[str, Any]]]
NotionFactory = Callable[[str], NotionClient]


@dataclass(frozen=True)
class FlowDefinition:
    """A named flow: its input model and its executor."""

    name: str
    input_model: type[BaseModel]
    execute: FlowExecutor
    description: str = ""


@dataclass
class FlowOutcome:
    """Result of one flow invocation, ready for the response envelope."""

    run_id: int
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    events: list[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return 200 if self.success else 500


def notion_factory_from_settings(settings: AppSettings) -> NotionFactory:
    """Build Notion clients with the configured endpoint and version."""

    def factory(token: str) -> NotionClient:
        return create_notion_client(
            token,
            base_url=settings.notion_base_url,
            notion_version=settings.notion_version,
            timeout=settings.notion_timeout,
        )

    return factory


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class FlowRunner:
    """
    Runs flows against the Run Store and the channel registry.

    Args:
        run_store: Durable run records
        registry: Per-run broadcast channels
        settings: Application settings
        notion_factory: token -> NotionClient (one client per invocation)
        llm: Optional LLM provider (needed by the markdown flow)
        background: Handle that owns progress delivery tasks
    """

    def __init__(
        self,
        run_store: RunStore,
        registry: ChannelRegistry,
        settings: AppSettings,
        *,
        notion_factory: NotionFactory | None = None,
        llm: LLMProvider | None = None,
        background: BackgroundWork | None = None,
    ):
        self._store = run_store
        self._registry = registry
        self._settings = settings
        self._notion_factory = notion_factory or notion_factory_from_settings(settings)
        self._llm = llm
        self._background = background

    async def run(self, definition: FlowDefinition, body: Any) -> tuple[FlowOutcome, ProgressPublisher]:
        """
        Execute one flow invocation.

        Args:
            definition: Flow to run
            body: Decoded JSON request body (None if it was not JSON)

        Returns:
            (outcome, publisher). The caller must await publisher.aclose()
            once the response is on its way.

        Raises:
            Exception: Only if the initial run record cannot be created
        """
        run_id = await self._store.create(definition.name, input_snapshot(body))

        publisher = ProgressPublisher(
            self._registry, run_id, definition.name, background=self._background
        )
        log = FlowLogger(flow_run_id=run_id, flow_name=definition.name)
        ctx: FlowContext | None = None

        publisher.publish(EventType.FLOW_STARTED)
        log.flow_started()

        try:
            inputs = definition.input_model.model_validate(body)

            async with self._notion_factory(inputs.notion_token) as notion:
                ctx = FlowContext(
                    run_id=run_id,
                    flow_name=definition.name,
                    notion=notion,
                    publisher=publisher,
                    log=log,
                    settings=self._settings,
                    llm=self._llm,
                )
                result = await definition.execute(ctx, inputs)

            await self._store.complete(run_id, result)

        except Exception as e:
            message = _error_message(e)
            duration = ctx.elapsed_ms if ctx else 0.0
            log.flow_failed(duration_ms=duration, error=message, error_type=type(e).__name__)

            try:
                await self._store.fail(run_id, message)
            except Exception as store_error:
                logger.error(f"[flows] Could not record failure of run {run_id}: {store_error}")

            publisher.publish(EventType.FLOW_FAILED, error=message)
            return (
                FlowOutcome(
                    run_id=run_id,
                    success=False,
                    error=message,
                    events=[event.type for event in publisher.published],
                ),
                publisher,
            )

        publisher.publish(EventType.FLOW_COMPLETED, **ctx.summary)
        log.flow_completed(duration_ms=ctx.elapsed_ms, **ctx.summary)

        return (
            FlowOutcome(
                run_id=run_id,
                success=True,
                data={"flowRunId": run_id, **result},
                events=[event.type for event in publisher.published],
            ),
            publisher,
        )
