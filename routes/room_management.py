from fastapi import APIRouter, Depends, HTTPException, Request, status
import logging
from models.schemas import RoomInfo, RoomListResponse
from room_manager import Room, RoomRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


def get_room_registry(request: Request) -> RoomRegistry:
    return request.app.state.coordinator.rooms


def to_room_info(room: Room, capacity: int) -> RoomInfo:
    return RoomInfo(
        roomId=room.room_id,
        members=room.members,
        numParticipants=len(room.members),
        isReady=len(room.members) >= capacity,
    )


@router.get("/rooms", response_model=RoomListResponse)
async def list_rooms(rooms: RoomRegistry = Depends(get_room_registry)):
    """
    List all active signaling rooms
    """
    room_list = [to_room_info(room, rooms.capacity) for room in rooms.snapshot()]
    return RoomListResponse(rooms=room_list, total=len(room_list))


@router.get("/room/{room_id}", response_model=RoomInfo)
async def get_room_info(room_id: str, rooms: RoomRegistry = Depends(get_room_registry)):
    """
    Get membership information about a specific room
    """
    room = rooms.get_room(room_id)
    if room is None:
        logger.info(f"Room info requested for unknown room: {room_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Room '{room_id}' not found"
        )
    return to_room_info(room, rooms.capacity)
