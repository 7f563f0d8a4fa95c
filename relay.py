from typing import Any, Dict, Optional

from connections import Connection, ConnectionHub
from event_names import ANSWER, CHAT_MESSAGE, ICE_CANDIDATE, OFFER, PEER_STATE
from registry import RoomRegistry
from schemas.events import (
    AnswerPayload,
    ChatMessagePayload,
    IceCandidatePayload,
    OfferPayload,
    PeerStatePayload,
)
from logging_config import get_logger

logger = get_logger(__name__)


class SignalingRelay:
    """Forwards signaling and room events without looking inside them.

    Addressed events (offer, answer, ice-candidate) go to exactly one peer,
    stamped with the sender's id. Room events (peer-state, chat-message) go
    to every other member of the room as recorded at the moment of sending.
    """

    def __init__(self, registry: RoomRegistry, hub: ConnectionHub):
        self.registry = registry
        self.hub = hub

    async def offer(self, sender: Connection, payload: OfferPayload):
        message = {"from": sender.id, "sdp": payload.sdp}
        if payload.name is not None:
            message["name"] = payload.name
        await self.forward(sender, payload.to, OFFER, message)

    async def answer(self, sender: Connection, payload: AnswerPayload):
        await self.forward(sender, payload.to, ANSWER, {"from": sender.id, "sdp": payload.sdp})

    async def ice_candidate(self, sender: Connection, payload: IceCandidatePayload):
        await self.forward(sender, payload.to, ICE_CANDIDATE, {"from": sender.id, "candidate": payload.candidate})

    async def peer_state(self, sender: Connection, payload: PeerStatePayload):
        state = payload.model_dump(by_alias=True, exclude_unset=True, exclude={"room_id"})
        await self.broadcast(sender, payload.room_id, PEER_STATE, {"id": sender.id, **state})

    async def chat_message(self, sender: Connection, payload: ChatMessagePayload):
        message = dict(payload.model_extra or {})
        if "room_id" in payload.model_fields_set:
            message = {"roomId": payload.room_id, **message}
        await self.broadcast(sender, payload.room_id, CHAT_MESSAGE, message)

    async def forward(self, sender: Connection, to: str, event: str, message: Dict[str, Any]) -> bool:
        delivered = await self.hub.send_to(to, event, message)
        if delivered:
            logger.debug(f"Relayed {event} from {sender.id} to {to}")
        return delivered

    async def broadcast(self, sender: Connection, room_id: Optional[str], event: str, message: Any) -> int:
        room_id = room_id or sender.room_id
        if not room_id:
            logger.debug(f"Dropping {event} from {sender.id}: no room given and not in a room")
            return 0
        if not self.registry.is_member(room_id, sender.id):
            logger.warning(f"Dropping {event} from {sender.id}: not a member of room {room_id}")
            return 0
        recipients = [p.id for p in self.registry.list_others(room_id, sender.id)]
        delivered = await self.hub.broadcast(recipients, event, message)
        logger.debug(f"Relayed {event} from {sender.id} to {delivered} members of room {room_id}")
        return delivered
