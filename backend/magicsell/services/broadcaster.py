"""
Realtime fan-out to connected WebSocket clients.

Delivery is best-effort and at-most-once: clients that connect later get no
replay, and a client whose socket fails is dropped.
"""

from typing import Any, Dict, Set
import logging

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

DATA_UPDATE = "data-update"
ORDER_UPDATED = "order-updated"


class Broadcaster:
    def __init__(self):
        self.connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)
        logger.info(f"Client connected ({len(self.connections)} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)
        logger.info(f"Client disconnected ({len(self.connections)} open)")

    async def send(self, websocket: WebSocket, event: str, data: Dict[str, Any]) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def broadcast(self, event: str, data: Dict[str, Any]) -> int:
        """Send an event to every client; returns how many received it."""
        delivered = 0
        for websocket in list(self.connections):
            try:
                await self.send(websocket, event, data)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                logger.warning(f"Dropping client after failed send of {event}: {e}")
                self.disconnect(websocket)
        return delivered
