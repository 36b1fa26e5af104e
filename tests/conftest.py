"""
Pytest configuration and fixtures for Notionflow tests.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from notionflow.config import AppSettings
from notionflow.integrations.notion import NotionClient, create_notion_client
from notionflow.providers.llm import BaseLLMProvider, LLMConfig, LLMResponse, Message
from notionflow.realtime import ChannelRegistry
from notionflow.storage import Database, RequestLogStore, RunStore

API_KEY = "test-api-key"


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class NotionStub:
    """
    In-process Notion API backed by httpx.MockTransport.

    Routes are (method, path regex) pairs; the responder is either a
    JSON-able value or a callable(request, match) -> httpx.Response.
    Unmatched requests get a Notion-style 404.
    """

    routes: list[tuple[str, re.Pattern[str], Any]] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)

    def on(self, method: str, pattern: str, responder: Any) -> None:
        self.routes.append((method, re.compile(pattern), responder))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")
        for method, pattern, responder in self.routes:
            match = pattern.fullmatch(path)
            if method == request.method and match:
                if callable(responder):
                    return responder(request, match)
                return httpx.Response(200, json=responder)
        return self.error(404, "object_not_found", f"No route for {request.method} {path}")

    @staticmethod
    def error(status: int, code: str, message: str) -> httpx.Response:
        return httpx.Response(
            status, json={"object": "error", "status": status, "code": code, "message": message}
        )

    def factory(self, token: str) -> NotionClient:
        self.tokens.append(token)
        return create_notion_client(token, transport=httpx.MockTransport(self.handler))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.removeprefix("/v1") == path
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict[str, Any]:
        return json.loads(request.content)


class ScriptedLLM(BaseLLMProvider):
    """LLM provider that replays canned responses in order."""

    def __init__(self, responses: list[str]):
        super().__init__(default_model="scripted")
        self._responses = list(responses)
        self.calls: list[tuple[list[Message], LLMConfig | None]] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def _complete(self, messages: list[Message], model: str, config: LLMConfig) -> LLMResponse:
        self.calls.append((messages, config))
        return LLMResponse(content=self._responses.pop(0), model=model, provider=self.name)


class RecordingObserver:
    """Channel observer that keeps every message it receives."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[str] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.messages.append(data)

    @property
    def events(self) -> list[dict[str, Any]]:
        return [json.loads(m) for m in self.messages]

    @property
    def types(self) -> list[str]:
        return [e["type"] for e in self.events]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """Settings with auth enabled and a throwaway SQLite file."""
    return AppSettings(
        environment="test",
        api_key=SecretStr(API_KEY),
        database_url=SecretStr(f"sqlite+aiosqlite:///{tmp_path / 'notionflow-test.db'}"),
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.database_url.get_secret_value())
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def run_store(database) -> RunStore:
    return RunStore(database)


@pytest.fixture
def request_log_store(database) -> RequestLogStore:
    return RequestLogStore(database)


@pytest.fixture
def registry() -> ChannelRegistry:
    return ChannelRegistry()


@pytest.fixture
def notion_stub() -> NotionStub:
    return NotionStub()


@pytest.fixture
def scripted_llm() -> Callable[[list[str]], ScriptedLLM]:
    return ScriptedLLM


@pytest.fixture
def observer_factory() -> Callable[..., RecordingObserver]:
    return RecordingObserver
