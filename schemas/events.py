from pydantic import BaseModel, ConfigDict, Field, StrictBool
from typing import Any, Optional

from constants import MAX_NAME_LENGTH, MAX_ROOM_ID_LENGTH


class Envelope(BaseModel):
    """One realtime frame: `{"event": "...", "data": ...}`."""
    event: str
    data: Any = None


class Participant(BaseModel):
    id: str
    name: str


class JoinRoomPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1, max_length=MAX_ROOM_ID_LENGTH)
    name: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)
    token: Optional[str] = None


class LeaveRoomPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: Optional[str] = Field(default=None, alias="roomId", max_length=MAX_ROOM_ID_LENGTH)


class OfferPayload(BaseModel):
    to: str
    sdp: Any = None
    name: Optional[str] = Field(default=None, max_length=MAX_NAME_LENGTH)


class AnswerPayload(BaseModel):
    to: str
    sdp: Any = None


class IceCandidatePayload(BaseModel):
    to: str
    candidate: Any = None


class PeerStatePayload(BaseModel):
    room_id: Optional[str] = Field(default=None, alias="roomId", max_length=MAX_ROOM_ID_LENGTH)
    muted: Optional[StrictBool] = None
    video_off: Optional[StrictBool] = Field(default=None, alias="videoOff")
    hand: Optional[StrictBool] = None


class ChatMessagePayload(BaseModel):
    # Only the exact `roomId` key routes; everything else is the client's message, relayed as-is
    model_config = ConfigDict(extra="allow")

    room_id: Optional[str] = Field(default=None, alias="roomId", max_length=MAX_ROOM_ID_LENGTH)


class AuthErrorPayload(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    rooms: int
    timestamp: str
