"""
Session coordinator - presence tracking and fan-out for the shared session.

Architecture:
    WebSocket accepted -> connect() -> join(name) -> roster_update to everyone
    POST/DELETE /records -> store -> record_created / record_removed to everyone
    socket closed or send failed -> disconnect() -> roster_update to the rest

Every public coroutine runs under one asyncio.Lock, so all connections observe
events in the same order. Delivery never awaits a peer: events go into a bounded
per-connection outbox drained by that connection's pump task. A full outbox or a
failed send closes only the offending connection.
"""
import asyncio
import enum
import json
import logging
import secrets
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Set, Union

from pydantic import BaseModel, Field, ValidationError

from .events import EventType, ClientOp, make_event
from .presence import PresenceTable

logger = logging.getLogger(__name__)

Sender = Callable[[dict], Awaitable[None]]
Hangup = Callable[[], Awaitable[None]]


class ConnectionState(str, enum.Enum):
    connected = "connected"  # Accepted, no display name yet
    joined = "joined"        # Bound in the presence table
    closed = "closed"        # Terminal


@dataclass
class Connection:
    """One live client channel."""
    id: str
    send: Sender
    outbox: asyncio.Queue
    hangup: Optional[Hangup] = None
    state: ConnectionState = ConnectionState.connected
    pump: Optional[asyncio.Task] = None

    def offer(self, event: dict) -> bool:
        """Queue an event without waiting. False means the peer has fallen too far behind."""
        try:
            self.outbox.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True


class JoinPayload(BaseModel):
    displayName: str = Field(..., min_length=1)


class ClientMessage(BaseModel):
    type: str
    data: Union[JoinPayload, str, None] = None


class MalformedMessage(ValueError):
    """A client frame that cannot be turned into an operation."""


def parse_join(raw: str) -> str:
    """Decode a client frame and return the display name of a join operation."""
    try:
        message = ClientMessage.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise MalformedMessage(f"Invalid message: {e}") from e

    if message.type != ClientOp.JOIN:
        raise MalformedMessage(f"Unknown operation: {message.type}")
    if isinstance(message.data, JoinPayload):
        return message.data.displayName
    if isinstance(message.data, str) and message.data:
        return message.data
    raise MalformedMessage("join requires a displayName")


class SessionCoordinator:
    """Owns the presence table and every push to connected clients."""

    def __init__(self, outbox_size: int = 100):
        self._outbox_size = outbox_size
        self._connections: Dict[str, Connection] = {}
        self._presence = PresenceTable(on_change=self._roster_changed)
        self._lock = asyncio.Lock()
        self._hangups: Set[asyncio.Task] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def roster(self) -> List[str]:
        return list(self._presence.snapshot())

    def state_of(self, connection_id: str) -> ConnectionState:
        connection = self._connections.get(connection_id)
        return connection.state if connection else ConnectionState.closed

    async def connect(self, send: Sender, hangup: Optional[Hangup] = None) -> Connection:
        """Register a newly accepted connection and start its pump.

        `hangup` is called once if the coordinator drops the connection on its
        own (failed send, full outbox) so the transport can close the socket.
        """
        async with self._lock:
            connection = Connection(
                id=secrets.token_hex(8),
                send=send,
                outbox=asyncio.Queue(maxsize=self._outbox_size),
                hangup=hangup,
            )
            self._connections[connection.id] = connection
            connection.pump = asyncio.create_task(self._pump(connection))

        logger.info(f"[Presence] Connection {connection.id} opened ({self.connection_count} live)")
        return connection

    async def join(self, connection_id: str, display_name: str) -> bool:
        """Bind a display name to a connection.

        A second join on the same connection overwrites the name in place and
        repeats the roster broadcast and confirmation.
        Returns False if the connection is already closed.
        """
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                logger.debug(f"[Presence] Dropped join on closed connection {connection_id}")
                return False

            if connection.state == ConnectionState.joined:
                logger.info(
                    f"[Presence] {connection_id} renamed "
                    f"{self._presence.display_name(connection_id)!r} -> {display_name!r}"
                )
            else:
                logger.info(f"[Presence] {connection_id} joined as {display_name!r}")

            connection.state = ConnectionState.joined
            self._presence.bind(connection_id, display_name)
            self._deliver(connection, make_event(EventType.CONNECTION_CONFIRMED))
            return True

    async def disconnect(self, connection_id: str) -> bool:
        """Close a connection. Safe to call any number of times from any path."""
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is None:
                return False
            self._close(connection)
            return True

    async def handle_message(self, connection_id: str, raw: str) -> None:
        """Apply one inbound frame. Malformed frames are answered to the sender only."""
        try:
            display_name = parse_join(raw)
        except MalformedMessage as e:
            logger.warning(f"[Presence] Rejected frame from {connection_id}: {e}")
            await self.reject(connection_id, str(e))
            return
        await self.join(connection_id, display_name)

    async def reject(self, connection_id: str, message: str) -> None:
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is not None:
                self._deliver(connection, make_event(EventType.ERROR, {"message": message}))

    async def record_created(self, record: dict) -> None:
        """Push a newly stored record to every connection, joined or not."""
        async with self._lock:
            self._fan_out(make_event(EventType.RECORD_CREATED, record))

    async def record_removed(self, record_id: int) -> None:
        async with self._lock:
            self._fan_out(make_event(EventType.RECORD_REMOVED, {"id": record_id}))

    async def shutdown(self) -> None:
        """Stop every pump without further broadcasts."""
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            pumps = []
            for connection in connections:
                connection.state = ConnectionState.closed
                self._presence.unbind(connection.id)
                if connection.pump:
                    connection.pump.cancel()
                    pumps.append(connection.pump)

        await asyncio.gather(*pumps, return_exceptions=True)

    # Everything below runs with self._lock held.

    def _roster_changed(self, roster) -> None:
        self._fan_out(make_event(EventType.ROSTER_UPDATE, {"users": list(roster)}))

    def _fan_out(self, event: dict) -> None:
        stalled = [c for c in list(self._connections.values()) if not c.offer(event)]
        for connection in stalled:
            logger.warning(f"[Presence] Outbox full for {connection.id}, closing it")
            self._drop(connection)

    def _deliver(self, connection: Connection, event: dict) -> None:
        if connection.state == ConnectionState.closed:
            return
        if not connection.offer(event):
            logger.warning(f"[Presence] Outbox full for {connection.id}, closing it")
            self._drop(connection)

    def _drop(self, connection: Connection) -> None:
        """Close a connection the peer did not ask to close, and tell the transport."""
        if connection.state == ConnectionState.closed:
            return
        self._close(connection)
        if connection.hangup:
            task = asyncio.create_task(connection.hangup())
            self._hangups.add(task)
            task.add_done_callback(self._hangup_done)

    def _hangup_done(self, task: asyncio.Task) -> None:
        self._hangups.discard(task)
        if not task.cancelled() and task.exception():
            logger.debug(f"[Presence] Hangup failed: {task.exception()}")

    def _close(self, connection: Connection) -> None:
        if connection.state == ConnectionState.closed:
            return
        connection.state = ConnectionState.closed
        self._connections.pop(connection.id, None)
        if connection.pump and connection.pump is not asyncio.current_task():
            connection.pump.cancel()
        # Rebroadcasts the roster to the remaining connections if it had joined
        self._presence.unbind(connection.id)
        logger.info(f"[Presence] Connection {connection.id} closed ({len(self._connections)} live)")

    async def _pump(self, connection: Connection) -> None:
        while True:
            event = await connection.outbox.get()
            try:
                await connection.send(event)
            except Exception as e:
                logger.warning(f"[Presence] Send to {connection.id} failed: {e}")
                async with self._lock:
                    self._drop(connection)
                return
