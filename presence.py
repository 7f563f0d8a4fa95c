from typing import List

from auth import AuthDecision
from connections import Connection, ConnectionHub
from event_names import AUTH_ERROR, USER_JOINED, USER_LEFT, USERS_IN_ROOM
from registry import RoomRegistry
from schemas.events import AuthErrorPayload, Participant
from logging_config import get_logger

logger = get_logger(__name__)


class PresenceNotifier:
    """Emits presence events for lifecycle transitions. Holds no state."""

    def __init__(self, registry: RoomRegistry, hub: ConnectionHub):
        self.registry = registry
        self.hub = hub

    async def users_in_room(self, connection: Connection, participants: List[Participant]):
        await connection.send(USERS_IN_ROOM, [p.model_dump() for p in participants])
        logger.debug(f"Sent {len(participants)} existing members to connection {connection.id}")

    async def user_joined(self, room_id: str, participant: Participant):
        await self._announce(room_id, participant, USER_JOINED)

    async def user_left(self, room_id: str, participant: Participant):
        await self._announce(room_id, participant, USER_LEFT)

    async def auth_error(self, connection: Connection, decision: AuthDecision):
        payload = AuthErrorPayload(message=decision.client_message)
        await connection.send(AUTH_ERROR, payload.model_dump())

    async def _announce(self, room_id: str, participant: Participant, event: str):
        recipients = [p.id for p in self.registry.list_others(room_id, participant.id)]
        delivered = await self.hub.broadcast(recipients, event, participant.model_dump())
        logger.debug(f"Announced {event} for {participant.id} in room {room_id} to {delivered} members")
