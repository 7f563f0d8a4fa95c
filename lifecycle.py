import asyncio
from typing import Any, Optional, Set

from fastapi import WebSocket
from pydantic import ValidationError

from auth import AuthVerifier
from connections import Connection, ConnectionHub, ConnectionState
from event_names import (
    ANSWER,
    CHAT_MESSAGE,
    CONNECTED,
    ICE_CANDIDATE,
    JOIN_ROOM,
    LEAVE_ROOM,
    OFFER,
    PEER_STATE,
)
from presence import PresenceNotifier
from registry import RoomRegistry
from relay import SignalingRelay
from schemas.events import (
    AnswerPayload,
    ChatMessagePayload,
    IceCandidatePayload,
    JoinRoomPayload,
    LeaveRoomPayload,
    OfferPayload,
    Participant,
    PeerStatePayload,
)
from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Drives every connection through CONNECTED -> JOINING -> ACTIVE -> CLOSED.

    The auth round-trip of a join runs in its own task so the rest of the
    connection's events, and every other connection, keep being served while
    it is pending. All registry changes happen before any await that follows
    them, so a disconnect racing a join or leave always sees a consistent
    membership table.
    """

    def __init__(self, registry: RoomRegistry, verifier: AuthVerifier):
        self.registry = registry
        self.verifier = verifier
        self.hub = ConnectionHub()
        self.presence = PresenceNotifier(registry, self.hub)
        self.relay = SignalingRelay(registry, self.hub)
        self._join_tasks: Set[asyncio.Task] = set()
        self._routes = {
            JOIN_ROOM: (JoinRoomPayload, self.join),
            LEAVE_ROOM: (LeaveRoomPayload, self.leave),
            OFFER: (OfferPayload, self.relay.offer),
            ANSWER: (AnswerPayload, self.relay.answer),
            ICE_CANDIDATE: (IceCandidatePayload, self.relay.ice_candidate),
            PEER_STATE: (PeerStatePayload, self.relay.peer_state),
            CHAT_MESSAGE: (ChatMessagePayload, self.relay.chat_message),
        }

    async def connect(self, websocket: WebSocket) -> Connection:
        connection = Connection(websocket)
        self.hub.add(connection)
        logger.info(f"User connected: {connection.id}")
        await connection.send(CONNECTED, {"id": connection.id})
        return connection

    async def dispatch(self, connection: Connection, event: str, data: Any):
        route = self._routes.get(event)
        if route is None:
            logger.warning(f"Ignoring unknown event {event!r} from connection {connection.id}")
            return
        model, handler = route
        try:
            payload = model.model_validate(data if data is not None else {})
        except ValidationError as e:
            logger.warning(f"Dropping invalid {event} payload from connection {connection.id}: {e.error_count()} error(s)")
            return
        await handler(connection, payload)

    async def join(self, connection: Connection, payload: JoinRoomPayload):
        if connection.state is ConnectionState.JOINING:
            logger.warning(f"Connection {connection.id} sent join-room while a join is pending, ignoring")
            return
        if not connection.is_open:
            return
        logger.info(f"{payload.name} attempting to join room {payload.room_id} (connection {connection.id})")
        connection.state = ConnectionState.JOINING
        task = asyncio.create_task(self._complete_join(connection, payload))
        connection.join_task = task
        self._join_tasks.add(task)
        task.add_done_callback(self._join_tasks.discard)

    async def _complete_join(self, connection: Connection, payload: JoinRoomPayload):
        try:
            decision = await self.verifier.verify(payload.token)

            if not connection.is_open:
                logger.info(f"Connection {connection.id} closed during token verification, discarding join of {payload.room_id}")
                return

            if not decision.admitted:
                logger.warning(f"Join of room {payload.room_id} by {connection.id} refused: token {decision.value}")
                await self.presence.auth_error(connection, decision)
                await self.disconnect(connection, code=1008, reason=decision.client_message)
                return

            await self._admit(connection, payload)
        except Exception as e:
            logger.error(f"Error joining connection {connection.id} to room {payload.room_id}: {e}", exc_info=True)
            await self.disconnect(connection, code=1011, reason="Internal error")

    async def _admit(self, connection: Connection, payload: JoinRoomPayload):
        room_id = payload.room_id
        name = (payload.name or "").strip() or f"User_{connection.id[:8]}"

        previous_room = connection.room_id
        departed: Optional[Participant] = None
        if previous_room and previous_room != room_id:
            departed = self.registry.leave(previous_room, connection.id)

        participant = Participant(id=connection.id, name=name)
        self.registry.join(room_id, participant)
        connection.name = name
        connection.room_id = room_id
        connection.state = ConnectionState.ACTIVE
        others = self.registry.list_others(room_id, connection.id)

        if departed is not None:
            logger.info(f"{departed.name} switched from room {previous_room} to {room_id}")
            await self.presence.user_left(previous_room, departed)
        await self.presence.users_in_room(connection, others)
        await self.presence.user_joined(room_id, participant)
        logger.info(f"{name} joined {room_id}. Total users: {len(others) + 1}")

    async def leave(self, connection: Connection, payload: LeaveRoomPayload):
        room_id = payload.room_id or connection.room_id
        if not room_id:
            logger.debug(f"Connection {connection.id} sent leave-room outside any room")
            return
        participant = self.registry.leave(room_id, connection.id)
        if participant is None:
            return
        if connection.room_id == room_id:
            connection.room_id = None
            if connection.state is ConnectionState.ACTIVE:
                connection.state = ConnectionState.CONNECTED
        logger.info(f"{participant.name} left room {room_id}")
        await self.presence.user_left(room_id, participant)

    async def disconnect(self, connection: Connection, code: int = 1000, reason: Optional[str] = None):
        """Tear a connection down. Safe to call more than once.

        Memberships are found by scanning every room rather than trusting
        `connection.room_id`, which a racing join may not have settled yet.
        """
        if connection.is_open:
            logger.info(f"Disconnected: {connection.id} ({connection.name or 'not joined'})")
        connection.state = ConnectionState.CLOSED
        self.hub.remove(connection.id)

        departures = []
        for room_id in self.registry.rooms_of(connection.id):
            participant = self.registry.leave(room_id, connection.id)
            if participant is not None:
                departures.append((room_id, participant))
        connection.room_id = None

        for room_id, participant in departures:
            logger.info(f"{participant.name} left room {room_id}")
            await self.presence.user_left(room_id, participant)

        await connection.close(code=code, reason=reason)

    async def aclose(self):
        for task in list(self._join_tasks):
            task.cancel()
        await self.verifier.aclose()
