"""
WebSocket endpoint for the chat room.

Protocol
--------
- On connect the server sends ``{"event": "history", "data": [...]}`` once.
- Every text frame a client sends is a chat message. A binary frame
  closes the connection with code 1003 (unsupported data).
- Each message is broadcast to all clients (sender included) as
  ``{"event": "message", "data": {"text": ..., "time": ...}}``.

No authentication and no rate limiting apply to the chat.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.websockets import WebSocketState

from campusfeed.logging import logger
from campusfeed.services.chat import ChatBroadcaster, Subscription

router = APIRouter()


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    """Relay live messages to one client until its subscription ends."""
    while True:
        message = await subscription.get()
        if message is None:
            await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
            return
        await websocket.send_json({"event": "message", "data": message.to_dict()})


@router.websocket("/chat")
async def chat_socket(websocket: WebSocket):
    broadcaster: ChatBroadcaster = websocket.app.state.broadcaster
    await websocket.accept()

    subscription = broadcaster.subscribe()
    logger.info("Chat client connected ({} online)", broadcaster.subscriber_count)
    await websocket.send_json(
        {"event": "history", "data": [m.to_dict() for m in subscription.snapshot]}
    )

    forwarder = asyncio.create_task(_forward(websocket, subscription))
    close_code = None
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            text = frame.get("text")
            if text is None:
                close_code = status.WS_1003_UNSUPPORTED_DATA
                break
            broadcaster.post(text)
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unsubscribe(subscription)
        forwarder.cancel()
        # The forwarder may also have failed writing to a closed socket.
        await asyncio.gather(forwarder, return_exceptions=True)
        if close_code is not None and websocket.application_state == WebSocketState.CONNECTED:
            logger.info("Closing chat client that sent a non-text frame")
            await websocket.close(code=close_code)
        logger.info("Chat client disconnected ({} online)", broadcaster.subscriber_count)
