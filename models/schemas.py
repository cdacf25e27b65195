# models/schemas.py
from pydantic import BaseModel
from typing import List


# Room-related models
class RoomInfo(BaseModel):
    roomId: str
    members: List[str]
    numParticipants: int
    isReady: bool


class RoomListResponse(BaseModel):
    rooms: List[RoomInfo]
    total: int


# Participant-related models
class ParticipantInfo(BaseModel):
    userId: str
    state: str
    initiator: bool


class ParticipantListResponse(BaseModel):
    roomId: str
    participants: List[ParticipantInfo]
    total: int


class RemoveParticipantResponse(BaseModel):
    roomId: str
    userId: str
    status: str


# RTC configuration
class IceServer(BaseModel):
    urls: str


class IceServersResponse(BaseModel):
    iceServers: List[IceServer]
