"""WebSocket /ws/live — pushes session events (state, frame, status, error) to the UI."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from simdrome.models import SessionEvent
from simdrome.session import StreamSessionController, get_controller

logger = logging.getLogger(__name__)

router = APIRouter()

# Per-client backlog; oldest messages are dropped when a client falls behind
CLIENT_QUEUE_SIZE = 256


def _enqueue(queue: asyncio.Queue, message: dict) -> None:
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(message)


async def _pump(ws: WebSocket, queue: asyncio.Queue) -> None:
    """Sole writer on the socket."""
    try:
        while True:
            message: dict = await queue.get()
            await ws.send_json(message)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        logger.warning("Live WebSocket send failed: %s", exc)


@router.websocket("/ws/live")
async def live_socket(ws: WebSocket, controller: StreamSessionController = Depends(get_controller)):
    await ws.accept()
    logger.info("Live WebSocket client connected")

    queue: asyncio.Queue = asyncio.Queue(maxsize=CLIENT_QUEUE_SIZE)

    def listener(event: SessionEvent) -> None:
        _enqueue(queue, event.model_dump(mode="json"))

    _enqueue(queue, {"type": "snapshot", "data": controller.snapshot().model_dump(mode="json")})
    controller.subscribe(listener)
    sender = asyncio.create_task(_pump(ws, queue))

    try:
        while True:
            data = await ws.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning("Ignoring non-JSON WebSocket message")
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                _enqueue(queue, {"type": "pong"})
    except WebSocketDisconnect:
        logger.info("Live WebSocket client disconnected")
    finally:
        controller.unsubscribe(listener)
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
