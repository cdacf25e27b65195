# models/events.py
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


# Inbound events (client -> server)
class JoinRoomEvent(BaseModel):
    type: Literal["join-room"] = "join-room"
    roomId: str = Field(..., min_length=1)


class SignalEvent(BaseModel):
    type: Literal["signal"] = "signal"
    roomId: str = Field(..., min_length=1)
    data: Any

    @field_validator("data")
    @classmethod
    def data_must_be_present(cls, value):
        if value is None:
            raise ValueError("data must not be null")
        return value


class LeaveRoomEvent(BaseModel):
    type: Literal["leave-room"] = "leave-room"
    roomId: str = Field(..., min_length=1)


class DisconnectEvent(BaseModel):
    """Raised by the transport when the socket closes; never parsed off the wire"""
    type: Literal["disconnect"] = "disconnect"


ClientEvent = Annotated[
    Union[JoinRoomEvent, SignalEvent, LeaveRoomEvent],
    Field(discriminator="type"),
]
InboundEvent = Union[JoinRoomEvent, SignalEvent, LeaveRoomEvent, DisconnectEvent]

client_event_adapter = TypeAdapter(ClientEvent)


def parse_client_event(raw: str) -> InboundEvent:
    """Parse a JSON text frame into an inbound event, raising ValidationError if malformed"""
    return client_event_adapter.validate_json(raw)


# Outbound events (server -> client)
class ConnectedMessage(BaseModel):
    type: Literal["connected"] = "connected"
    userId: str


class UserJoinedMessage(BaseModel):
    type: Literal["user-joined"] = "user-joined"
    userId: str


class ReadyMessage(BaseModel):
    type: Literal["ready"] = "ready"
    roomId: str


class SignalMessage(BaseModel):
    type: Literal["signal"] = "signal"
    userId: str
    data: Any


class UserLeftMessage(BaseModel):
    type: Literal["user-left"] = "user-left"
    userId: str


class EvictedMessage(BaseModel):
    type: Literal["evicted"] = "evicted"
    roomId: str


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: str
    roomId: Optional[str] = None


OutboundMessage = Union[
    ConnectedMessage,
    UserJoinedMessage,
    ReadyMessage,
    SignalMessage,
    UserLeftMessage,
    EvictedMessage,
    ErrorMessage,
]
