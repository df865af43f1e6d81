"""Shared WebSocket connection that delivers order and billing pushes."""
import asyncio
import inspect
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Any]
Connector = Callable[[str], Awaitable[Any]]


class ChannelState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


def table_room(table_number: int) -> str:
    return f"table_{table_number}"


class StatusChannel:
    """One long-lived connection per app, shared by every consumer.

    Rooms joined once are re-joined after every reconnect. Reconnects are bounded:
    after `reconnect_attempts` consecutive failures the channel stays disconnected.
    """

    def __init__(
        self,
        url: str,
        connector: Connector | None = None,
        reconnect_attempts: int = 5,
        reconnect_delay: float = 1.0
    ):
        self.url = url
        self._connector = connector or connect
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self.state = ChannelState.DISCONNECTED
        self._rooms: dict[str, str | None] = {}
        self._handlers: dict[str, list[Handler]] = {}
        self._connection = None
        self._task: asyncio.Task | None = None
        self._connected = asyncio.Event()

    def on(self, event_type: str, handler: Handler):
        self._handlers.setdefault(event_type, []).append(handler)

    async def connect(self):
        if self.state == ChannelState.CLOSED:
            raise RuntimeError("Channel is closed")
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def wait_connected(self, timeout: float | None = None):
        await asyncio.wait_for(self._connected.wait(), timeout)

    async def join(self, room: str, token: str | None = None):
        """Subscribe to a room; remembered for reconnects."""
        self._rooms[room] = token
        if self.state == ChannelState.CONNECTED:
            await self._send_join(room, token)

    async def leave(self, room: str):
        """Unsubscribe from a room and stop re-joining it after reconnects."""
        if room not in self._rooms:
            return
        del self._rooms[room]
        if self.state == ChannelState.CONNECTED:
            try:
                await self._connection.send(json.dumps({"type": "leave_room", "room": room}))
            except (ConnectionClosed, OSError) as e:
                logger.warning(f"[Channel] Could not leave {room}: {e}")

    async def _send_join(self, room: str, token: str | None):
        message = {"type": "join_room", "room": room}
        if token:
            message["token"] = token
        try:
            await self._connection.send(json.dumps(message))
        except (ConnectionClosed, OSError) as e:
            logger.warning(f"[Channel] Could not join {room}: {e}")

    async def close(self):
        self.state = ChannelState.CLOSED
        self._connected.clear()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def _run(self):
        failures = 0
        while self.state != ChannelState.CLOSED:
            self.state = ChannelState.CONNECTING
            try:
                self._connection = await self._connector(self.url)
            except (OSError, WebSocketException) as e:
                logger.warning(f"[Channel] Connection to {self.url} failed: {e}")
            else:
                failures = 0
                self.state = ChannelState.CONNECTED
                self._connected.set()
                logger.info(f"[Channel] Connected to {self.url}")
                for room, token in list(self._rooms.items()):
                    await self._send_join(room, token)
                try:
                    await self._listen(self._connection)
                except ConnectionClosed as e:
                    logger.info(f"[Channel] Connection dropped: {e}")
                self._connected.clear()
                self._connection = None

            if self.state == ChannelState.CLOSED:
                break
            self.state = ChannelState.DISCONNECTED
            failures += 1
            if failures > self.reconnect_attempts:
                logger.error(f"[Channel] Giving up after {self.reconnect_attempts} reconnect attempts")
                break
            await asyncio.sleep(self.reconnect_delay)

    async def _listen(self, connection):
        async for raw in connection:
            await self.dispatch(raw)

    async def dispatch(self, raw: str | bytes):
        """Route one inbound frame to its handlers. Malformed frames are dropped."""
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.warning(f"[Channel] Dropping non-JSON frame: {raw!r:.80}")
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("type"), str):
            logger.warning(f"[Channel] Dropping frame without a type: {frame!r:.80}")
            return

        for handler in self._handlers.get(frame["type"], []):
            try:
                result = handler(frame)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"[Channel] Handler for {frame['type']} failed")
