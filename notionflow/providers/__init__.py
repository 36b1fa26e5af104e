"""
Notionflow Providers

Swappable AI providers used by flows.
"""

from .llm import (
    AnthropicLLMProvider,
    BaseLLMProvider,
    LLMConfig,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    Message,
    MessageRole,
    OpenAILLMProvider,
)

__all__ = [
    "AnthropicLLMProvider",
    "BaseLLMProvider",
    "LLMConfig",
    "LLMProvider",
    "LLMProviderError",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAILLMProvider",
]
