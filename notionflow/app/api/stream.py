"""
Real-time endpoints for flow progress.

- WS   /ws/flow-updates/{flow_id}      attach a WebSocket to the run's channel
- GET  /mcp/stream/{flow_id}           Server-Sent Events via StreamBridge
- POST /api/flow-updates/{flow_id}     post an event to the run's channel
"""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, StreamingResponse

from notionflow.app.auth import require_api_key, require_stream_key
from notionflow.app.dependencies import get_channel_registry
from notionflow.app.responses import NotionflowHTTPError, success_response
from notionflow.realtime import (
    SSE_HEADERS,
    BridgeHandshakeError,
    ChannelRegistry,
    InvalidEventError,
    StreamBridge,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws/flow-updates/{flow_id}")
async def flow_updates_socket(
    websocket: WebSocket,
    flow_id: str,
    registry: ChannelRegistry = Depends(get_channel_registry),
) -> None:
    """
    Observe a run over WebSocket.

    JSON objects sent by the client are re-broadcast on the channel.
    """
    await websocket.accept()
    channel = registry.get(flow_id)
    channel.attach(websocket)
    logger.info(f"[ws] Observer connected to flow {flow_id}")

    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except json.JSONDecodeError:
                logger.warning(f"[ws] Ignoring non-JSON message on flow {flow_id}")
                continue

            if not isinstance(message, dict):
                logger.warning(f"[ws] Ignoring non-object message on flow {flow_id}")
                continue

            try:
                await registry.post(flow_id, message)
            except InvalidEventError as e:
                logger.warning(f"[ws] Ignoring message on flow {flow_id}: {e}")

    except WebSocketDisconnect:
        logger.info(f"[ws] Observer disconnected from flow {flow_id}")
    finally:
        channel.detach(websocket)
        registry.release(flow_id)


@router.get("/mcp/stream/{flow_id}", dependencies=[Depends(require_stream_key)])
async def flow_event_stream(
    flow_id: str,
    request: Request,
    registry: ChannelRegistry = Depends(get_channel_registry),
) -> StreamingResponse:
    """Stream a run's progress as Server-Sent Events."""
    bridge = StreamBridge(registry, flow_id, is_disconnected=request.is_disconnected)
    try:
        stream = bridge.open()
    except BridgeHandshakeError as e:
        raise NotionflowHTTPError(502, str(e)) from e

    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)


@router.post(
    "/api/flow-updates/{flow_id}",
    status_code=202,
    dependencies=[Depends(require_api_key)],
)
async def post_flow_update(
    flow_id: str,
    request: Request,
    registry: ChannelRegistry = Depends(get_channel_registry),
) -> JSONResponse:
    """Broadcast one event to every observer of a run."""
    try:
        message = await request.json()
    except ValueError as e:
        raise NotionflowHTTPError(400, "Invalid broadcast payload") from e

    if not isinstance(message, dict):
        raise NotionflowHTTPError(400, "Invalid broadcast payload")

    try:
        event = await registry.post(flow_id, message)
    except InvalidEventError as e:
        raise NotionflowHTTPError(400, "Invalid broadcast payload") from e

    return success_response(event.to_message(), status_code=202)
