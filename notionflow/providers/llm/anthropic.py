"""
Anthropic LLM Provider for Notionflow.
"""
from __future__ import annotations

from .base import BaseLLMProvider, LLMConfig, LLMResponse, Message, split_system


class AnthropicLLMProvider(BaseLLMProvider):
    """
    Anthropic Messages API provider.

    System prompts go through the dedicated ``system`` parameter. Requests
    for non-Claude models (the flow default is an OpenAI model name) fall
    back to ``default_model``.
    """

    model_prefixes = ("claude-",)

    def __init__(self, api_key: str, model: str = "claude-3-5-haiku-latest", timeout: float = 60.0):
        super().__init__(default_model=model)
        self._api_key = api_key
        self._timeout = timeout
        self._client = None

    @property
    def name(self) -> str:
        return "anthropic"

    def _get_client(self):
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def _complete(
        self,
        messages: list[Message],
        model: str,
        config: LLMConfig,
    ) -> LLMResponse:
        system, turns = split_system(messages)
        response = await self._get_client().messages.create(
            model=model,
            system=system,
            messages=turns,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

        text = "".join(block.text for block in response.content if block.type == "text")
        return LLMResponse(
            content=text,
            model=response.model,
            provider=self.name,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
        )
