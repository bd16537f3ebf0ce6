# backend/cybershield/api/v1/routes_live.py

from fastapi import APIRouter, Depends, WebSocket

from cybershield.api.deps import get_notifier
from cybershield.services.notifications.notifier import Notifier

router = APIRouter(tags=["live"])


@router.websocket("/ws")
async def live_updates(websocket: WebSocket, live: Notifier = Depends(get_notifier)) -> None:
    """
    Server -> client push channel. Anything the client sends is ignored;
    reading only serves to notice the disconnect.
    """
    await websocket.accept()
    subscriber = live.subscribe(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        live.unsubscribe(subscriber)
