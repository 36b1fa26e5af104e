"""
Notionflow Integrations Layer.

Clients for remote services invoked by the raw API and by flows.
Each integration follows a consistent pattern:

1. Client: Handles authentication and API communication
2. Schemas: Pydantic models for request validation

Directory Structure:
    integrations/
    ├── base.py           # Base client and error taxonomy
    └── notion/           # Notion pages, databases, blocks, users, search
        ├── client.py     # NotionClient
        └── schemas.py    # Request models
"""

from notionflow.integrations.base import (
    AuthenticationError,
    IntegrationClient,
    IntegrationConfig,
    IntegrationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "IntegrationClient",
    "IntegrationConfig",
    "IntegrationError",
    "NotFoundError",
    "RateLimitError",
    "ValidationError",
]
