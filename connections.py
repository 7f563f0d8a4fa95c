import asyncio
import enum
import uuid
from typing import Any, Dict, Iterable, Optional

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionState(enum.Enum):
    CONNECTED = "connected"  # transport open, not in a room
    JOINING = "joining"  # join-room received, waiting on the auth authority
    ACTIVE = "active"  # member of a room
    CLOSED = "closed"


class Connection:
    """One live WebSocket session."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.id = connection_id or uuid.uuid4().hex
        self.name: Optional[str] = None
        self.room_id: Optional[str] = None
        self.state = ConnectionState.CONNECTED
        self.join_task: Optional[asyncio.Task] = None
        self.transport_closed = False

    @property
    def is_open(self) -> bool:
        return self.state is not ConnectionState.CLOSED

    async def send(self, event: str, data: Any) -> bool:
        """Send one frame. Returns False instead of raising when delivery fails."""
        if self.transport_closed:
            return False
        try:
            await self.websocket.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            logger.debug(f"Could not send {event} to connection {self.id}: {e}")
            return False

    async def close(self, code: int = 1000, reason: Optional[str] = None):
        if self.transport_closed:
            return
        self.transport_closed = True
        try:
            await self.websocket.close(code=code, reason=reason)
            logger.debug(f"Closed transport for connection {self.id} (code={code})")
        except Exception as e:
            logger.debug(f"Error closing WebSocket for connection {self.id}: {e}")

    def __repr__(self):
        return f"<Connection {self.id} state={self.state.value} room={self.room_id}>"


class ConnectionHub:
    """Live connections by id, with best-effort fan-out."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def add(self, connection: Connection):
        self._connections[connection.id] = connection
        logger.debug(f"Registered connection {connection.id} (live connections: {len(self)})")

    def remove(self, connection_id: str) -> Optional[Connection]:
        connection = self._connections.pop(connection_id, None)
        if connection is not None:
            logger.debug(f"Unregistered connection {connection_id} (live connections: {len(self)})")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    async def send_to(self, connection_id: str, event: str, data: Any) -> bool:
        connection = self.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return False
        return await connection.send(event, data)

    async def broadcast(self, connection_ids: Iterable[str], event: str, data: Any) -> int:
        """Send to every listed live connection concurrently; returns how many got it."""
        targets = [self._connections[cid] for cid in connection_ids if cid in self._connections]
        if not targets:
            return 0
        results = await asyncio.gather(*(c.send(event, data) for c in targets), return_exceptions=True)
        delivered = sum(1 for result in results if result is True)
        logger.debug(f"Broadcast {event} to {delivered}/{len(targets)} connections")
        return delivered
