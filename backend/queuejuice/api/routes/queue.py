"""Upload queue routes — host surface for the event bridge."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from queuejuice.api.deps import get_bridge
from queuejuice.schemas.queue import (
    ClearResponse,
    FilesSubmitted,
    QueueItemView,
    QueueSnapshot,
    RemoveResponse,
)
from queuejuice.services.event_bridge import EventBridge
from queuejuice.services.event_bus import Subscription

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=QueueSnapshot)
async def get_queue(bridge: EventBridge = Depends(get_bridge)):
    """Queued items in admission order, plus display options."""
    return bridge.snapshot()


@router.post(
    "/files",
    response_model=list[QueueItemView],
    status_code=status.HTTP_202_ACCEPTED,
)
async def submit_files(body: FilesSubmitted, bridge: EventBridge = Depends(get_bridge)):
    """Admit a batch of files; each starts its own simulated transfer."""
    admitted = bridge.files_submitted(body.files)
    return [QueueItemView.from_item(item) for item in admitted]


@router.delete(
    "/items/{item_id}",
    response_model=RemoveResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def remove_item(item_id: str, bridge: EventBridge = Depends(get_bridge)):
    """Request removal. Unknown or already exiting ids are accepted as no-ops."""
    accepted = bridge.remove_requested(item_id)
    return RemoveResponse(id=item_id, accepted=accepted)


@router.post("/clear", response_model=ClearResponse)
async def clear_queue(bridge: EventBridge = Depends(get_bridge)):
    """Drop every item at once (no per-item removal notifications)."""
    return ClearResponse(cleared=bridge.clear_requested())


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    async for notification in subscription:
        await websocket.send_json(notification.model_dump(mode="json"))


@router.websocket("/events")
async def queue_events(websocket: WebSocket, bridge: EventBridge = Depends(get_bridge)):
    """Stream notifications out; accept ``{"signal", "payload"}`` messages in."""
    # Subscribe before accepting so nothing published after the handshake is missed
    subscription = bridge.subscribe()
    await websocket.accept()
    forward = asyncio.create_task(_forward(websocket, subscription))
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError as e:
                logger.debug("Ignoring non-JSON websocket message: %s", e)
                continue
            if isinstance(message, dict):
                bridge.dispatch(message.get("signal", ""), message.get("payload"))
    except WebSocketDisconnect:
        logger.debug("Queue event stream disconnected")
    finally:
        subscription.close()
        forward.cancel()
        await asyncio.gather(forward, return_exceptions=True)
