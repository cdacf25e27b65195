import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.signaling_config import OverflowPolicy

logger = logging.getLogger(__name__)


class RoomError(Exception):
    code = "room-error"

    def __init__(self, room_id: str, message: str):
        super().__init__(message)
        self.room_id = room_id
        self.message = message


class RoomFullError(RoomError):
    code = "room-full"


class AlreadyInRoom(RoomError):
    code = "already-in-room"


@dataclass
class JoinResult:
    members: List[str]
    became_ready: bool
    evicted: Optional[str] = None


@dataclass
class LeaveResult:
    remaining_members: List[str]
    deleted: bool
    # True when the room had reached capacity before this leave
    was_ready: bool = False


@dataclass
class Room:
    room_id: str
    members: List[str] = field(default_factory=list)


class RoomRegistry:
    """
    In-memory room table: room id -> ordered member connection ids.

    A room exists only while it has members. The first member is the
    initiator once the room fills. Readiness is the transition to
    `capacity` members and is reported exactly once per fill.
    """

    def __init__(self, capacity: int = 2, overflow_policy: OverflowPolicy = OverflowPolicy.REJECT):
        if capacity < 2:
            raise ValueError("room capacity must be at least 2")
        self.capacity = capacity
        self.overflow_policy = OverflowPolicy(overflow_policy)
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def join(self, room_id: str, connection_id: str) -> JoinResult:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                room = Room(room_id=room_id, members=[connection_id])
                self._rooms[room_id] = room
                logger.info(f"Created room {room_id} for {connection_id}")
                return JoinResult(members=list(room.members), became_ready=False)

            if connection_id in room.members:
                raise AlreadyInRoom(room_id, f"Already a member of room '{room_id}'")

            evicted = None
            if len(room.members) >= self.capacity:
                if self.overflow_policy == OverflowPolicy.REJECT:
                    logger.warning(f"Rejected {connection_id}: room {room_id} is full ({len(room.members)}/{self.capacity})")
                    raise RoomFullError(room_id, f"Room '{room_id}' is full")
                if self.overflow_policy == OverflowPolicy.EVICT:
                    evicted = room.members.pop(0)
                    logger.info(f"Evicted {evicted} from room {room_id} to admit {connection_id}")
                else:
                    logger.warning(f"Room {room_id} grows past capacity with {connection_id}")

            room.members.append(connection_id)
            became_ready = len(room.members) == self.capacity
            if became_ready:
                logger.info(f"Room {room_id} is ready: {room.members}")
            return JoinResult(members=list(room.members), became_ready=became_ready, evicted=evicted)

    def leave(self, room_id: str, connection_id: str) -> LeaveResult:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return LeaveResult(remaining_members=[], deleted=False)
            if connection_id not in room.members:
                return LeaveResult(remaining_members=list(room.members), deleted=False)

            was_ready = len(room.members) >= self.capacity
            room.members.remove(connection_id)
            if not room.members:
                del self._rooms[room_id]
                logger.info(f"Deleted empty room {room_id}")
                return LeaveResult(remaining_members=[], deleted=True, was_ready=was_ready)

            logger.info(f"{connection_id} left room {room_id}, {len(room.members)} remaining")
            return LeaveResult(remaining_members=list(room.members), deleted=False, was_ready=was_ready)

    def members(self, room_id: str) -> List[str]:
        with self._lock:
            room = self._rooms.get(room_id)
            return list(room.members) if room else []

    def members_except(self, room_id: str, connection_id: str) -> List[str]:
        with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return []
            return [member for member in room.members if member != connection_id]

    def is_member(self, room_id: str, connection_id: str) -> bool:
        with self._lock:
            room = self._rooms.get(room_id)
            return room is not None and connection_id in room.members

    def is_ready(self, room_id: str) -> bool:
        with self._lock:
            room = self._rooms.get(room_id)
            return room is not None and len(room.members) >= self.capacity

    def get_room(self, room_id: str) -> Optional[Room]:
        """Return a copy of the room, or None if it does not exist"""
        with self._lock:
            room = self._rooms.get(room_id)
            return Room(room_id=room.room_id, members=list(room.members)) if room else None

    def snapshot(self) -> List[Room]:
        with self._lock:
            return [Room(room_id=r.room_id, members=list(r.members)) for r in self._rooms.values()]

    def __contains__(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
