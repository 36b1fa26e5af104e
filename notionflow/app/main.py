"""
Notionflow - Notion proxy and flow orchestration service

FastAPI application entry point.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from notionflow import __version__
from notionflow.app.api import flows_router, monitor_router, raw_router, stream_router
from notionflow.app.dependencies import (
    get_background_work,
    get_database,
    get_request_log_store,
    get_settings,
    initialize_services,
    shutdown_services,
)
from notionflow.app.responses import NotionflowHTTPError, error_response, success_response

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting Notionflow services...")
    try:
        await initialize_services()
        logger.info("Notionflow services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Notionflow services...")
    try:
        await shutdown_services()
        logger.info("Notionflow services shut down successfully")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title="Notionflow",
    description="Proxy and orchestration layer for the Notion API with live flow progress",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
    openapi_url="/openapi",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "x-notion-token"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Record each request off the response path."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000

    try:
        store = get_request_log_store()
        background = get_background_work()
    except RuntimeError:
        return response

    background.spawn(
        store.log_request(
            path=request.url.path,
            method=request.method,
            status=response.status_code,
            user_agent=request.headers.get("user-agent"),
            duration_ms=round(duration_ms, 2),
        ),
        name="request-log",
    )
    return response


@app.exception_handler(NotionflowHTTPError)
async def notionflow_error_handler(request: Request, exc: NotionflowHTTPError):
    return error_response(exc.message, exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(str(exc) or "Internal server error", 500)


# Include routers
app.include_router(raw_router)
app.include_router(flows_router)
app.include_router(monitor_router)
app.include_router(stream_router)


@app.get("/", tags=["root"])
async def root() -> dict[str, Any]:
    """Root endpoint with service info."""
    return {
        "name": "Notionflow",
        "version": __version__,
        "description": "Notion API proxy with flow orchestration and live progress",
        "endpoints": {
            "health": "/health",
            "openapi": "/openapi",
            "raw": "/api/raw/*",
            "flows": "/api/flows/*",
            "monitor": "/monitor",
            "websocket": "/ws/flow-updates/{flow_id}",
            "stream": "/mcp/stream/{flow_id}",
            "flowUpdates": "/api/flow-updates/{flow_id}",
        },
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns service status, uptime and database connectivity.
    """
    try:
        database = "connected" if await get_database().ping() else "disconnected"
    except RuntimeError:
        database = "disconnected"

    return success_response(
        {
            "status": "ok",
            "uptime": round(time.monotonic() - _started_at, 3),
            "environment": get_settings().environment,
            "database": database,
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "notionflow.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
