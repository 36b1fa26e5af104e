"""
Flow Context for Notionflow.

Invocation-scoped state handed to a flow executor: the run id, the
Notion client built for this caller's token, the progress publisher,
and the optional LLM provider.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from notionflow.providers.llm import LLMConfig, Message

if TYPE_CHECKING:
    from notionflow.config import AppSettings
    from notionflow.integrations.notion import NotionClient
    from notionflow.providers.llm import LLMProvider
    from notionflow.realtime import ProgressPublisher

    from .observability import FlowLogger


class LLMUnavailableError(RuntimeError):
    """Raised when a flow needs a language model and none is configured."""


@dataclass
class FlowContext:
    """
    Request-scoped context passed to a flow executor.

    Executors put the fields for the final ``flow_completed`` event in
    ``summary``.
    """

    run_id: int
    flow_name: str
    notion: NotionClient
    publisher: ProgressPublisher
    log: FlowLogger
    settings: AppSettings
    llm: LLMProvider | None = None
    summary: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000

    def publish(self, event_type: str, **payload: Any) -> None:
        """Queue a milestone event and record the step."""
        self.publisher.publish(event_type, **payload)
        self.log.step_completed(event_type, **payload)

    async def complete_text(self, system: str, user: str, model: str | None = None) -> str:
        """Run one system + user exchange against the configured model."""
        if self.llm is None:
            raise LLMUnavailableError("No LLM provider is configured")

        response = await self.llm.complete(
            [Message.system(system), Message.user(user)],
            LLMConfig(model=model or self.settings.default_ai_model),
        )
        return response.content
