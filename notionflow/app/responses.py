"""
Response envelopes for Notionflow.

Every JSON response has the same shape:
    {"success": bool, "data"?: ..., "error"?: str, "timestamp": ISO 8601}
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class NotionflowHTTPError(Exception):
    """Raised by request-layer code to return an error envelope."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _now() -> str:
    return datetime.now(UTC).isoformat()


def success_body(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "timestamp": _now()}


def error_body(error: str) -> dict[str, Any]:
    return {"success": False, "error": error, "timestamp": _now()}


def success_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(jsonable_encoder(success_body(data)), status_code=status_code)


def error_response(error: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(error_body(error), status_code=status_code)
