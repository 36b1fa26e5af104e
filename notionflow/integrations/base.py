"""
Base classes for Notionflow integrations.

An integration client wraps one httpx.AsyncClient scoped to a single
caller credential. Non-2xx responses become IntegrationError subtypes
chosen by status code; nothing is retried.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class IntegrationError(Exception):
    """
    A remote service call failed.

    ``str(error)`` is the upstream message with nothing prepended, so a
    failed run records exactly what the service said.
    """

    def __init__(
        self,
        message: str,
        integration: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.integration = integration
        self.status_code = status_code
        self.code = code
        self.response_body = response_body

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.integration}, {self.status_code}, {self.message!r})"


class AuthenticationError(IntegrationError):
    """401/403"""


class NotFoundError(IntegrationError):
    """404"""


class ValidationError(IntegrationError):
    """400/422"""


class RateLimitError(IntegrationError):
    """429. ``retry_after`` is seconds from the Retry-After header, if sent."""

    def __init__(self, message: str, integration: str, *, retry_after: float | None = None, **kwargs: Any):
        super().__init__(message, integration, **kwargs)
        self.retry_after = retry_after


_STATUS_ERRORS: dict[int, type[IntegrationError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthenticationError,
    404: NotFoundError,
    422: ValidationError,
}


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class IntegrationConfig:
    base_url: str = ""
    timeout: float = 30.0


# =============================================================================
# Base Client
# =============================================================================


class IntegrationClient(ABC):
    """
    Shared HTTP plumbing for integration clients.

    Subclasses provide ``name`` and ``_get_auth_headers()``, and may
    override ``_default_headers()`` and ``_error_message()``. Use as an
    async context manager so the connection pool is closed when the
    caller is done.
    """

    def __init__(self, config: IntegrationConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def _get_auth_headers(self) -> dict[str, str]: ...

    def _default_headers(self) -> dict[str, str]:
        return {}

    def _http(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    **self._default_headers(),
                    **self._get_auth_headers(),
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Make one HTTP call.

        Args:
            method: HTTP method
            path: Path relative to ``config.base_url``
            params: Query parameters
            json: JSON body

        Raises:
            IntegrationError: On timeout, network failure or non-2xx status
        """
        logger.debug(f"[{self.name}] {method} {path}")
        try:
            response = await self._http().request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            raise IntegrationError(f"Request timeout: {e}", self.name) from e
        except httpx.TransportError as e:
            raise IntegrationError(f"Network error: {e}", self.name) from e

        if not response.is_success:
            raise self._to_error(response)
        return response

    def _error_message(self, response: httpx.Response) -> tuple[str, str | None]:
        """(message, code) for an error response; defaults to the body text."""
        return response.text or f"HTTP {response.status_code}", None

    def _to_error(self, response: httpx.Response) -> IntegrationError:
        status = response.status_code
        message, code = self._error_message(response)
        details: dict[str, Any] = {"status_code": status, "code": code, "response_body": response.text}

        logger.warning(f"[{self.name}] HTTP {status}: {message}")

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            return RateLimitError(
                message,
                self.name,
                retry_after=float(retry_after) if retry_after else None,
                **details,
            )

        error_type = _STATUS_ERRORS.get(status, IntegrationError)
        return error_type(message, self.name, **details)

    async def __aenter__(self) -> IntegrationClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
