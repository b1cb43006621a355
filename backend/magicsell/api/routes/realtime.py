import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def realtime(websocket: WebSocket):
    """
    Push channel. Sends the current orders and customers on connect, then
    every data-update and order-updated event. Client messages are ignored.
    """
    service = websocket.app.state.service
    await service.subscribe(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        service.broadcaster.disconnect(websocket)
