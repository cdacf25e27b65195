# routes/participant_management.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
import logging
from connection_registry import ConnectionState
from models.schemas import ParticipantInfo, ParticipantListResponse, RemoveParticipantResponse
from session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


def get_coordinator(request: Request) -> SessionCoordinator:
    return request.app.state.coordinator


@router.get("/room/{room_id}/participants", response_model=ParticipantListResponse)
async def get_room_participants(room_id: str, coordinator: SessionCoordinator = Depends(get_coordinator)):
    """
    Get list of participants in a room, initiator first
    """
    members = coordinator.rooms.members(room_id)
    if not members:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Room '{room_id}' not found"
        )

    participant_list = []
    for index, user_id in enumerate(members):
        connection = coordinator.connections.get(user_id)
        state = connection.state if connection else ConnectionState.DISCONNECTED
        participant_list.append(ParticipantInfo(
            userId=user_id,
            state=state.value,
            initiator=index == 0,
        ))

    return ParticipantListResponse(
        roomId=room_id,
        participants=participant_list,
        total=len(participant_list)
    )


@router.delete("/room/{room_id}/participants/{user_id}", response_model=RemoveParticipantResponse)
async def remove_participant(room_id: str, user_id: str, coordinator: SessionCoordinator = Depends(get_coordinator)):
    """
    Remove a participant from the room; the remaining member is told they left
    """
    removed = await coordinator.remove_participant(room_id, user_id)
    if not removed:
        logger.warning(f"Remove failed: {user_id} is not in room {room_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Participant '{user_id}' not found in room '{room_id}'"
        )

    return RemoveParticipantResponse(
        roomId=room_id,
        userId=user_id,
        status="removed"
    )
