"""
Dependency Injection for Notionflow.

Provides the process-wide service instances (database, stores, channel
registry, background work, LLM provider) and the per-request Notion
client factory. Instances are created by initialize_services() from the
FastAPI lifespan and torn down by shutdown_services().
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends

from notionflow.config import AppSettings, load_settings
from notionflow.flows import FlowRunner, NotionFactory, notion_factory_from_settings
from notionflow.providers.llm import AnthropicLLMProvider, LLMProvider, OpenAILLMProvider
from notionflow.realtime import ChannelRegistry
from notionflow.storage import Database, RequestLogStore, RunStore
from notionflow.utils.background import BackgroundWork

logger = logging.getLogger(__name__)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings()


# Global instances (initialized on startup)
_database: Optional[Database] = None
_run_store: Optional[RunStore] = None
_request_logs: Optional[RequestLogStore] = None
_registry: Optional[ChannelRegistry] = None
_background: Optional[BackgroundWork] = None
_llm_provider: Optional[LLMProvider] = None


def _require(instance, name: str):
    if instance is None:
        raise RuntimeError(f"{name} is not initialized; call initialize_services() first")
    return instance


def get_database() -> Database:
    return _require(_database, "Database")


def get_run_store() -> RunStore:
    return _require(_run_store, "RunStore")


def get_request_log_store() -> RequestLogStore:
    return _require(_request_logs, "RequestLogStore")


def get_channel_registry() -> ChannelRegistry:
    return _require(_registry, "ChannelRegistry")


def get_background_work() -> BackgroundWork:
    return _require(_background, "BackgroundWork")


def get_llm_provider() -> Optional[LLMProvider]:
    """Configured LLM provider, or None when no API key is set."""
    return _llm_provider


def get_notion_factory(settings: AppSettings = Depends(get_settings)) -> NotionFactory:
    """Factory building one Notion client per invocation."""
    return notion_factory_from_settings(settings)


def get_flow_runner(
    run_store: RunStore = Depends(get_run_store),
    registry: ChannelRegistry = Depends(get_channel_registry),
    settings: AppSettings = Depends(get_settings),
    notion_factory: NotionFactory = Depends(get_notion_factory),
    llm: Optional[LLMProvider] = Depends(get_llm_provider),
    background: BackgroundWork = Depends(get_background_work),
) -> FlowRunner:
    return FlowRunner(
        run_store,
        registry,
        settings,
        notion_factory=notion_factory,
        llm=llm,
        background=background,
    )


def build_llm_provider(settings: AppSettings) -> Optional[LLMProvider]:
    """
    Pick the LLM provider named by default_llm_provider.

    Falls back to whichever provider has a key.
    """
    providers: dict[str, LLMProvider] = {}
    if settings.openai_api_key:
        providers["openai"] = OpenAILLMProvider(
            api_key=settings.openai_api_key.get_secret_value(),
            model=settings.default_ai_model,
        )
    if settings.anthropic_api_key:
        providers["anthropic"] = AnthropicLLMProvider(
            api_key=settings.anthropic_api_key.get_secret_value(),
        )

    if not providers:
        logger.warning("[llm] No LLM API key configured - markdown orchestration disabled")
        return None

    provider = providers.get(settings.default_llm_provider) or next(iter(providers.values()))
    logger.info(f"[llm] Using provider: {provider.name}")
    return provider


async def initialize_services(settings: AppSettings | None = None) -> None:
    """
    Initialize all services on application startup.

    Called from FastAPI lifespan.
    """
    global _database, _run_store, _request_logs, _registry, _background, _llm_provider

    settings = settings or get_settings()

    if not settings.auth_enabled:
        logger.warning("NOTIONFLOW_API_KEY not set - authentication disabled")

    _database = Database(settings.database_url.get_secret_value(), echo=settings.debug)
    await _database.init_db()

    _run_store = RunStore(_database)
    _request_logs = RequestLogStore(_database)
    _registry = ChannelRegistry()
    _background = BackgroundWork("notionflow")
    _llm_provider = build_llm_provider(settings)


async def shutdown_services() -> None:
    """
    Cleanup all services on application shutdown.

    Pending background work settles before the channels and the
    database go away.
    """
    global _database, _run_store, _request_logs, _registry, _background, _llm_provider

    if _background is not None:
        await _background.drain()
        _background = None

    if _registry is not None:
        _registry.close()
        _registry = None

    if _database is not None:
        await _database.close()
        _database = None

    _run_store = None
    _request_logs = None
    _llm_provider = None
