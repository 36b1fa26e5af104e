"""
OpenAI LLM Provider for Notionflow.

Chat Completions over the openai SDK's AsyncOpenAI client.
"""
from __future__ import annotations

from .base import BaseLLMProvider, LLMConfig, LLMResponse, Message


class OpenAILLMProvider(BaseLLMProvider):
    """
    OpenAI-based LLM provider.

    Serves the gpt-* and o-series models; ``ai_model`` on the markdown
    flow selects among them.

    Requirements:
    - openai package
    - NOTIONFLOW_OPENAI_API_KEY environment variable
    """

    model_prefixes = ("gpt-", "o1", "o3", "o4")

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 60.0):
        super().__init__(default_model=model)
        self._api_key = api_key
        self._timeout = timeout
        self._client = None

    @property
    def name(self) -> str:
        return "openai"

    def _get_client(self):
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout)
        return self._client

    async def _complete(
        self,
        messages: list[Message],
        model: str,
        config: LLMConfig,
    ) -> LLMResponse:
        response = await self._get_client().chat.completions.create(
            model=model,
            messages=[m.to_dict() for m in messages],
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

        usage = {}
        if response.usage:
            usage = {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            provider=self.name,
            usage=usage,
        )
