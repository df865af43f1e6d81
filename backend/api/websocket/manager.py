import logging
from typing import Dict, Iterable, Set
from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections grouped into named rooms (admin, table_<n>)."""

    def __init__(self):
        # room -> Set[WebSocket]
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # WebSocket -> rooms it joined
        self.websocket_to_rooms: Dict[WebSocket, Set[str]] = {}

    async def connect(self, websocket: WebSocket):
        """Accept a WebSocket; it receives nothing until it joins a room."""
        await websocket.accept()
        self.websocket_to_rooms.setdefault(websocket, set())

    def join(self, websocket: WebSocket, room: str):
        """Add a connected WebSocket to a room. Joining twice is harmless."""
        self.active_connections.setdefault(room, set()).add(websocket)
        self.websocket_to_rooms.setdefault(websocket, set()).add(room)
        logger.info(f"[ConnectionManager] Connection joined room {room} ({len(self.active_connections[room])} members)")

    def leave(self, websocket: WebSocket, room: str):
        """Remove a WebSocket from one room. Leaving a room it is not in is harmless."""
        self.websocket_to_rooms.get(websocket, set()).discard(room)
        if room in self.active_connections:
            self.active_connections[room].discard(websocket)
            if not self.active_connections[room]:
                del self.active_connections[room]

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket from every room it joined."""
        rooms = self.websocket_to_rooms.pop(websocket, set())
        for room in rooms:
            if room in self.active_connections:
                self.active_connections[room].discard(websocket)
                if not self.active_connections[room]:
                    del self.active_connections[room]

    def room_size(self, room: str) -> int:
        return len(self.active_connections.get(room, ()))

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        """Send a message to a specific WebSocket."""
        await websocket.send_json(message)

    async def broadcast(self, message: dict, rooms: Iterable[str], exclude: WebSocket = None) -> int:
        """Send a message once to every member of the given rooms. Returns the delivery count."""
        recipients: Set[WebSocket] = set()
        for room in rooms:
            recipients |= self.active_connections.get(room, set())

        if not recipients:
            logger.debug(f"[ConnectionManager] No active connections for {message.get('type', 'unknown')}")
            return 0

        disconnected = set()
        sent_count = 0
        for connection in recipients:
            if connection is exclude:
                continue
            try:
                await connection.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"[ConnectionManager] Error sending message: {e}")
                disconnected.add(connection)

        logger.info(
            f"[ConnectionManager] Broadcast '{message.get('type', 'unknown')}': "
            f"{sent_count} sent, {len(disconnected)} failed"
        )

        # Clean up disconnected connections
        for conn in disconnected:
            self.disconnect(conn)

        return sent_count

    async def broadcast_to_room(self, message: dict, room: str, exclude: WebSocket = None) -> int:
        """Broadcast a message to all connections in a room."""
        return await self.broadcast(message, [room], exclude=exclude)


manager = ConnectionManager()
