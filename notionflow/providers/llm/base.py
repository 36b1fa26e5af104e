"""
LLM Provider Protocol for Notionflow.

The markdown orchestration flow needs one thing from a model: given a
system prompt, a user prompt and a model name, return text. Providers
implement that over their vendor SDK; BaseLLMProvider handles model
resolution and error wrapping so subclasses only make the SDK call.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One prompt message."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(MessageRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(MessageRole.USER, content)


@dataclass
class LLMConfig:
    """
    Per-request options.

    Attributes:
        model: Requested model; None means the provider default
        temperature: Sampling temperature. Kept low so planning and
            block conversion return stable JSON.
        max_tokens: Upper bound on generated tokens
    """

    model: str | None = None
    temperature: float = 0.2
    max_tokens: int = 4096


@dataclass
class LLMResponse:
    """Text returned by a provider plus bookkeeping for logs."""

    content: str
    model: str = ""
    provider: str = ""
    usage: dict[str, int] = field(default_factory=dict)


class LLMProviderError(RuntimeError):
    """A provider SDK call failed. The message is the SDK's message."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(message)


@runtime_checkable
class LLMProvider(Protocol):
    """What flows depend on."""

    @property
    def name(self) -> str: ...

    async def complete(
        self,
        messages: list[Message],
        config: LLMConfig | None = None,
    ) -> LLMResponse: ...


class BaseLLMProvider(ABC):
    """
    Shared provider behavior.

    Subclasses set ``model_prefixes`` to the model families they serve
    and implement ``_complete``. A requested model outside those
    families (e.g. ``gpt-4o-mini`` sent to Anthropic) is replaced by the
    provider default.
    """

    model_prefixes: tuple[str, ...] = ()

    def __init__(self, default_model: str = ""):
        self.default_model = default_model

    @property
    @abstractmethod
    def name(self) -> str: ...

    def resolve_model(self, requested: str | None) -> str:
        if not requested:
            return self.default_model
        if self.model_prefixes and not requested.startswith(self.model_prefixes):
            logger.warning(
                f"[llm] {self.name} cannot serve model '{requested}', using '{self.default_model}'"
            )
            return self.default_model
        return requested

    async def complete(
        self,
        messages: list[Message],
        config: LLMConfig | None = None,
    ) -> LLMResponse:
        """
        Generate a completion.

        Raises:
            LLMProviderError: If the vendor call fails
        """
        config = config or LLMConfig()
        model = self.resolve_model(config.model)

        try:
            return await self._complete(messages, model, config)
        except LLMProviderError:
            raise
        except Exception as e:
            logger.error(f"[llm] {self.name} completion failed: {e}", exc_info=True)
            raise LLMProviderError(self.name, str(e)) from e

    @abstractmethod
    async def _complete(
        self,
        messages: list[Message],
        model: str,
        config: LLMConfig,
    ) -> LLMResponse: ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model='{self.default_model}')"


def split_system(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Separate system text from the conversation turns."""
    system = "\n\n".join(m.content for m in messages if m.role is MessageRole.SYSTEM)
    turns = [m.to_dict() for m in messages if m.role is not MessageRole.SYSTEM]
    return system, turns
