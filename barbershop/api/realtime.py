from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from barbershop.domain.entities.change_event import ALL_EVENTS, ChangeEvent
from barbershop.wiring.dependencies import get_change_feed


router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws/changes/{table}")
async def relay_changes(websocket: WebSocket, table: str, event: str = ALL_EVENTS) -> None:
    """Forward change notifications for table to one browser connection. No replay."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()

    def enqueue(change: ChangeEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, change)

    async def forward() -> None:
        while True:
            change = await queue.get()
            await websocket.send_json(change.to_payload())

    # Subscribed before accept so nothing published after the handshake is missed.
    subscription = get_change_feed().subscribe(table, event.upper(), enqueue)
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        logger.info("Realtime client connected", extra={"event": event})
        sender = asyncio.create_task(forward())
        while True:
            # Inbound messages are ignored; this only waits for the disconnect.
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Realtime client disconnected", extra={"event": event})
    finally:
        subscription.unsubscribe()
        if sender is not None:
            sender.cancel()
