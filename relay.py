import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from models.events import OutboundMessage, SignalMessage
from room_manager import RoomRegistry

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """An outbound message addressed to a single connection"""
    target: str
    message: OutboundMessage
    # Set on relayed signals; both ends must still be in the room when it is sent
    room_id: Optional[str] = None
    sender: Optional[str] = None


class SignalingRelay:
    """Forwards opaque payloads to the other members of a room. Holds no state of its own."""

    def __init__(self, rooms: RoomRegistry):
        self.rooms = rooms

    def relay(self, room_id: str, sender_id: str, payload: Any) -> List[Delivery]:
        if not self.rooms.is_member(room_id, sender_id):
            logger.debug(f"Dropping signal from {sender_id}: not a member of room {room_id}")
            return []

        targets = self.rooms.members_except(room_id, sender_id)
        logger.debug(f"Relaying signal from {sender_id} in room {room_id} to {len(targets)} peer(s)")
        return [
            Delivery(
                target=target,
                message=SignalMessage(userId=sender_id, data=payload),
                room_id=room_id,
                sender=sender_id,
            )
            for target in targets
        ]
