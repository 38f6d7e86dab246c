"""
Presence endpoints - the WebSocket channel and a roster snapshot.
"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from ..services.session import SessionCoordinator
from .dependencies import get_coordinator

router = APIRouter()


@router.get("/presence")
async def get_presence(coordinator: SessionCoordinator = Depends(get_coordinator)):
    """Who is online right now."""
    return {
        "users": coordinator.roster(),
        "connections": coordinator.connection_count,
    }


@router.websocket("/ws")
async def presence_socket(websocket: WebSocket, coordinator: SessionCoordinator = Depends(get_coordinator)):
    """Bidirectional channel: clients send join, server pushes roster and record events."""
    await websocket.accept()

    async def hangup():
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.close()

    connection = await coordinator.connect(websocket.send_json, hangup)
    try:
        while websocket.application_state == WebSocketState.CONNECTED:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

            raw = message.get("text")
            if raw is None:
                await coordinator.reject(connection.id, "Binary frames are not supported")
                continue
            await coordinator.handle_message(connection.id, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await coordinator.disconnect(connection.id)
