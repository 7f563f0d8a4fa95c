from typing import Dict, List, Optional

from schemas.events import Participant
from logging_config import get_logger

logger = get_logger(__name__)


class RoomRegistry:
    """In-memory table of room id -> participants, in join order.

    A room exists only while it has at least one participant: it is created
    by the first join and deleted by the last leave. Every method completes
    without yielding to the event loop, so callers never observe a room
    half-way through a mutation.
    """

    def __init__(self):
        self._rooms: Dict[str, Dict[str, Participant]] = {}
        logger.info("Initializing RoomRegistry")

    def join(self, room_id: str, participant: Participant):
        """Add a participant to a room, creating the room if needed."""
        if not self.has_room(room_id):
            self._rooms[room_id] = {}
            logger.debug(f"Created room {room_id}")
        members = self._rooms[room_id]
        if participant.id in members:
            logger.debug(f"Participant {participant.id} already in room {room_id}, replacing record")
        members[participant.id] = participant
        logger.debug(f"Participant {participant.id} ({participant.name}) added to room {room_id} (members: {len(members)})")
        return participant

    def leave(self, room_id: str, connection_id: str) -> Optional[Participant]:
        """Remove a connection from a room and return its record, if it was there."""
        members = self._rooms.get(room_id)
        if not members or connection_id not in members:
            logger.debug(f"Connection {connection_id} is not a member of room {room_id}")
            return None
        participant = members.pop(connection_id)
        logger.debug(f"Participant {connection_id} removed from room {room_id} (members: {len(members)})")
        if not members:
            del self._rooms[room_id]
            logger.debug(f"Room {room_id} is empty, deleted")
        return participant

    def list_others(self, room_id: str, excluding_id: str) -> List[Participant]:
        """Snapshot of a room's members minus one connection."""
        return [p for p in self.members(room_id) if p.id != excluding_id]

    def members(self, room_id: str) -> List[Participant]:
        return list(self._rooms.get(room_id, {}).values())

    def is_member(self, room_id: str, connection_id: str) -> bool:
        return connection_id in self._rooms.get(room_id, {})

    def has_room(self, room_id: str) -> bool:
        return room_id in self._rooms

    def rooms_of(self, connection_id: str) -> List[str]:
        """Every room holding this connection. Scans all rooms."""
        return [room_id for room_id, members in self._rooms.items() if connection_id in members]

    def room_count(self) -> int:
        return len(self._rooms)
