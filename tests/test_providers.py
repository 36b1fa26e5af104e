"""
Tests for LLM providers and provider selection.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from notionflow.app.dependencies import build_llm_provider
from notionflow.config import AppSettings
from notionflow.providers.llm import (
    AnthropicLLMProvider,
    LLMConfig,
    LLMProviderError,
    Message,
    OpenAILLMProvider,
)


class TestModelResolution:
    """Tests for BaseLLMProvider.resolve_model."""

    def test_default_when_unset(self):
        provider = OpenAILLMProvider(api_key="k", model="gpt-4o-mini")
        assert provider.resolve_model(None) == "gpt-4o-mini"

    def test_own_family_passes_through(self):
        provider = OpenAILLMProvider(api_key="k")
        assert provider.resolve_model("gpt-4o") == "gpt-4o"

    def test_foreign_model_falls_back(self):
        provider = AnthropicLLMProvider(api_key="k", model="claude-3-5-haiku-latest")
        assert provider.resolve_model("gpt-4o-mini") == "claude-3-5-haiku-latest"


class TestAnthropicProvider:
    """Tests for AnthropicLLMProvider with a mocked SDK client."""

    def _client(self, text="[]"):
        response = MagicMock()
        response.content = [MagicMock(type="text", text=text)]
        response.model = "claude-3-5-haiku-latest"
        response.usage.input_tokens = 3
        response.usage.output_tokens = 5
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=response)
        return client

    @pytest.mark.asyncio
    async def test_system_prompt_is_separate(self):
        provider = AnthropicLLMProvider(api_key="k")
        provider._client = self._client('[{"title": "A", "content": "a"}]')

        response = await provider.complete(
            [Message.system("plan"), Message.user("# A")],
            LLMConfig(model="gpt-4o-mini"),
        )

        kwargs = provider._client.messages.create.call_args.kwargs
        assert kwargs["system"] == "plan"
        assert kwargs["messages"] == [{"role": "user", "content": "# A"}]
        assert kwargs["model"] == "claude-3-5-haiku-latest"
        assert response.content == '[{"title": "A", "content": "a"}]'
        assert response.provider == "anthropic"

    @pytest.mark.asyncio
    async def test_sdk_failure_is_wrapped(self):
        provider = AnthropicLLMProvider(api_key="k")
        provider._client = MagicMock()
        provider._client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))

        with pytest.raises(LLMProviderError, match="overloaded") as exc_info:
            await provider.complete([Message.user("x")])

        assert exc_info.value.provider == "anthropic"


class TestProviderSelection:
    """Tests for build_llm_provider."""

    def test_none_without_keys(self):
        assert build_llm_provider(AppSettings()) is None

    def test_preferred_provider(self):
        settings = AppSettings(
            openai_api_key=SecretStr("o"),
            anthropic_api_key=SecretStr("a"),
            default_llm_provider="anthropic",
        )
        assert build_llm_provider(settings).name == "anthropic"

    def test_falls_back_to_available_provider(self):
        settings = AppSettings(anthropic_api_key=SecretStr("a"), default_llm_provider="openai")
        assert build_llm_provider(settings).name == "anthropic"
