"""
Configuration Schemas for Notionflow.

Pydantic models for application settings loaded from the environment.

Security:
    Sensitive fields use SecretStr to prevent accidental logging
    of credentials. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr

ENV_PREFIX = "NOTIONFLOW_"


class AppSettings(BaseModel):
    """
    Application settings model.

    Used for type-safe settings access.

    Security:
        API keys and tokens use SecretStr to prevent accidental logging.
        Access secret values with: settings.api_key.get_secret_value()
    """

    # Service identity
    service_name: str = "notionflow"
    environment: str = "development"
    debug: bool = False

    # Inbound authentication (empty disables auth for development)
    api_key: SecretStr = Field(default=SecretStr(""), description="Bearer key for /api and /monitor")

    # Storage
    database_url: SecretStr = Field(
        default=SecretStr("sqlite+aiosqlite:///./notionflow.db"),
        description="SQLAlchemy async database URL",
    )

    # Notion
    notion_base_url: str = Field(default="https://api.notion.com/v1", description="Notion API base URL")
    notion_version: str = Field(default="2022-06-28", description="Notion-Version header value")
    notion_timeout: float = Field(default=30.0, gt=0)

    # AI providers (SecretStr prevents accidental logging)
    openai_api_key: SecretStr | None = None
    anthropic_api_key: SecretStr | None = None
    default_llm_provider: str = "openai"
    default_ai_model: str = "gpt-4o-mini"

    # Monitor
    monitor_default_limit: int = Field(default=50, ge=1)
    monitor_max_limit: int = Field(default=200, ge=1)

    @property
    def auth_enabled(self) -> bool:
        """Whether inbound bearer authentication is enforced."""
        return bool(self.api_key.get_secret_value())


def _secret(value: str | None) -> SecretStr | None:
    return SecretStr(value) if value else None


def load_settings(environ: Mapping[str, str] | None = None) -> AppSettings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        AppSettings populated from NOTIONFLOW_* variables
    """
    env = os.environ if environ is None else environ

    def get(name: str, default: str | None = None) -> str | None:
        return env.get(f"{ENV_PREFIX}{name}", default)

    return AppSettings(
        # Service
        service_name=get("SERVICE_NAME", "notionflow"),
        environment=get("ENVIRONMENT", "development"),
        debug=(get("DEBUG", "false") or "").lower() == "true",
        # Auth
        api_key=SecretStr(get("API_KEY", "") or ""),
        # Storage
        database_url=SecretStr(get("DATABASE_URL", "sqlite+aiosqlite:///./notionflow.db") or ""),
        # Notion
        notion_base_url=get("NOTION_BASE_URL", "https://api.notion.com/v1"),
        notion_version=get("NOTION_VERSION", "2022-06-28"),
        notion_timeout=float(get("NOTION_TIMEOUT", "30.0") or 30.0),
        # AI
        openai_api_key=_secret(get("OPENAI_API_KEY")),
        anthropic_api_key=_secret(get("ANTHROPIC_API_KEY")),
        default_llm_provider=get("DEFAULT_LLM_PROVIDER", "openai"),
        default_ai_model=get("DEFAULT_AI_MODEL", "gpt-4o-mini"),
        # Monitor
        monitor_default_limit=int(get("MONITOR_DEFAULT_LIMIT", "50") or 50),
        monitor_max_limit=int(get("MONITOR_MAX_LIMIT", "200") or 200),
    )
