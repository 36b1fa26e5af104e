"""
LLM Providers for Notionflow.

- OpenAILLMProvider: gpt-* models
- AnthropicLLMProvider: claude-* models
"""

from .anthropic import AnthropicLLMProvider
from .base import (
    BaseLLMProvider,
    LLMConfig,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    Message,
    MessageRole,
)
from .openai import OpenAILLMProvider

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
