import json
import logging
import re
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.websocket.manager import manager
from core.security import decode_access_token
from schemas.websocket import (
    ADMIN_ROOM,
    table_room,
    JoinRoomMessage,
    LeaveRoomMessage,
    AdminJoinMessage,
    CustomerJoinMessage,
    RoomJoinedMessage,
    RoomLeftMessage,
)

logger = logging.getLogger(__name__)

TABLE_ROOM_PATTERN = re.compile(r"^table_[1-9]\d*$")


async def _send_error(websocket: WebSocket, message: str):
    await manager.send_personal_message({"type": "error", "message": message}, websocket)


async def _join(websocket: WebSocket, room: str):
    manager.join(websocket, room)
    await manager.send_personal_message(RoomJoinedMessage(room=room).model_dump(mode="json"), websocket)


def _is_admin_token(token: str | None) -> bool:
    if not token:
        return False
    payload = decode_access_token(token)
    return bool(payload and payload.get("role") == "admin")


async def handle_join_room(websocket: WebSocket, data: dict):
    """Handle join_room: table rooms are open, the admin room needs a staff token."""
    msg = JoinRoomMessage(**data)

    if msg.room == ADMIN_ROOM:
        if not _is_admin_token(msg.token):
            await _send_error(websocket, "Admin token required to join the admin room")
            return
    elif not TABLE_ROOM_PATTERN.match(msg.room):
        await _send_error(websocket, f"Unknown room: {msg.room}")
        return

    await _join(websocket, msg.room)


async def handle_leave_room(websocket: WebSocket, data: dict):
    """Handle leave_room."""
    msg = LeaveRoomMessage(**data)
    manager.leave(websocket, msg.room)
    await manager.send_personal_message(RoomLeftMessage(room=msg.room).model_dump(mode="json"), websocket)


async def handle_admin_join(websocket: WebSocket, data: dict):
    """Handle admin:join."""
    msg = AdminJoinMessage(**data)
    if not _is_admin_token(msg.token):
        await _send_error(websocket, "Admin token required to join the admin room")
        return
    await _join(websocket, ADMIN_ROOM)


async def handle_customer_join(websocket: WebSocket, data: dict):
    """Handle customer:join."""
    msg = CustomerJoinMessage(**data)
    if msg.table_number < 1:
        await _send_error(websocket, "Table number must be at least 1")
        return
    await _join(websocket, table_room(msg.table_number))


async def _handle_message(websocket: WebSocket, data: dict):
    """Route incoming message to appropriate handler."""
    message_type = data.get("type")

    handlers = {
        "join_room": lambda: handle_join_room(websocket, data),
        "leave_room": lambda: handle_leave_room(websocket, data),
        "admin:join": lambda: handle_admin_join(websocket, data),
        "customer:join": lambda: handle_customer_join(websocket, data),
    }

    handler = handlers.get(message_type)
    if handler:
        try:
            await handler()
        except ValidationError as e:
            await _send_error(websocket, f"Invalid {message_type} message: {e.errors()}")
    else:
        logger.info(f"[WebSocket] Unknown message type: {message_type}")
        await _send_error(websocket, f"Unknown message type: {message_type}")


async def websocket_rooms_endpoint(websocket: WebSocket):
    """Real-time hub: clients join rooms and then only listen for pushes."""
    await manager.connect(websocket)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except ValueError:
                await _send_error(websocket, "Messages must be JSON objects")
                continue
            if not isinstance(data, dict):
                await _send_error(websocket, "Messages must be JSON objects")
                continue
            await _handle_message(websocket, data)
    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception:
        manager.disconnect(websocket)
        raise
