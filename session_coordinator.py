import asyncio
import logging
from typing import Dict, List, Optional

from connection_registry import Connection, ConnectionRegistry, ConnectionState, SendCallable
from models.events import (
    ConnectedMessage,
    DisconnectEvent,
    ErrorMessage,
    EvictedMessage,
    InboundEvent,
    JoinRoomEvent,
    LeaveRoomEvent,
    ReadyMessage,
    SignalEvent,
    UserJoinedMessage,
    UserLeftMessage,
)
from relay import Delivery, SignalingRelay
from room_manager import RoomError, RoomRegistry

logger = logging.getLogger(__name__)


class SessionCoordinator:
    """
    Applies inbound events to the room and connection registries and
    delivers the resulting notifications.

    Every event is handled as one atomic unit under a single lock; the
    notifications it produces are computed inside the lock and sent after
    it is released. Targets are looked up again at send time, so anything
    addressed to a connection that has since gone away is dropped, and a
    relayed signal is dropped unless sender and target still share the room.
    """

    def __init__(
        self,
        rooms: RoomRegistry,
        connections: ConnectionRegistry,
        relay: Optional[SignalingRelay] = None,
        max_rooms_per_connection: int = 1,
    ):
        self.rooms = rooms
        self.connections = connections
        self.relay = relay or SignalingRelay(rooms)
        self.max_rooms_per_connection = max_rooms_per_connection
        self._lock = asyncio.Lock()
        self._transitions = {
            JoinRoomEvent: self._on_join,
            SignalEvent: self._on_signal,
            LeaveRoomEvent: self._on_leave,
            DisconnectEvent: self._on_disconnect,
        }

    async def connect(self, connection_id: str, send: SendCallable) -> Connection:
        async with self._lock:
            connection = self.connections.register(connection_id, send)
        logger.info(f"Connection {connection_id} opened")
        await self._deliver([Delivery(connection_id, ConnectedMessage(userId=connection_id))])
        return connection

    async def handle(self, connection_id: str, event: InboundEvent) -> List[Delivery]:
        transition = self._transitions.get(type(event))
        if transition is None:
            logger.warning(f"Unsupported event {type(event).__name__} from {connection_id}")
            deliveries = [Delivery(connection_id, ErrorMessage(
                code="unsupported-event",
                message=f"Unsupported event: {type(event).__name__}",
            ))]
        else:
            async with self._lock:
                deliveries = transition(connection_id, event)
        await self._deliver(deliveries)
        return deliveries

    async def disconnect(self, connection_id: str) -> List[Delivery]:
        return await self.handle(connection_id, DisconnectEvent())

    async def remove_participant(self, room_id: str, connection_id: str) -> bool:
        """Take a participant out of a room from the server side"""
        async with self._lock:
            if not self.rooms.is_member(room_id, connection_id):
                return False
            deliveries = [Delivery(connection_id, EvictedMessage(roomId=room_id))]
            deliveries.extend(self._leave_room(connection_id, room_id))
        logger.info(f"Removed {connection_id} from room {room_id}")
        await self._deliver(deliveries)
        return True

    # ---------- transitions (called with the lock held) ---------- #

    def _on_join(self, connection_id: str, event: JoinRoomEvent) -> List[Delivery]:
        room_id = event.roomId
        connection = self.connections.get(connection_id)
        if connection is None:
            return []

        if room_id in connection.rooms:
            return [self._error(connection_id, "already-in-room", f"Already a member of room '{room_id}'", room_id)]
        if len(connection.rooms) >= self.max_rooms_per_connection:
            return [self._error(
                connection_id, "already-in-room",
                f"Leave {', '.join(sorted(connection.rooms))} before joining another room", room_id,
            )]

        try:
            result = self.rooms.join(room_id, connection_id)
        except RoomError as e:
            return [self._error(connection_id, e.code, e.message, room_id)]

        self.connections.add_room(connection_id, room_id)
        self.connections.set_state(connection_id, ConnectionState.JOINED)
        logger.info(f"{connection_id} joined room {room_id} ({len(result.members)} member(s))")

        deliveries = []
        if result.evicted:
            self.connections.discard_room(result.evicted, room_id)
            deliveries.append(Delivery(result.evicted, EvictedMessage(roomId=room_id)))
            deliveries.extend(
                Delivery(member, UserLeftMessage(userId=result.evicted))
                for member in result.members if member != connection_id
            )

        deliveries.extend(
            Delivery(member, UserJoinedMessage(userId=connection_id))
            for member in result.members if member != connection_id
        )

        if result.became_ready:
            for member in result.members:
                self.connections.set_state(member, ConnectionState.READY)
                deliveries.append(Delivery(member, ReadyMessage(roomId=room_id)))
        return deliveries

    def _on_signal(self, connection_id: str, event: SignalEvent) -> List[Delivery]:
        return self.relay.relay(event.roomId, connection_id, event.data)

    def _on_leave(self, connection_id: str, event: LeaveRoomEvent) -> List[Delivery]:
        if not self.rooms.is_member(event.roomId, connection_id):
            return []
        return self._leave_room(connection_id, event.roomId)

    def _on_disconnect(self, connection_id: str, event: DisconnectEvent) -> List[Delivery]:
        deliveries = []
        for room_id in sorted(self.connections.unregister(connection_id)):
            deliveries.extend(self._leave_room(connection_id, room_id))
        logger.info(f"Connection {connection_id} closed")
        return deliveries

    def _leave_room(self, connection_id: str, room_id: str) -> List[Delivery]:
        result = self.rooms.leave(room_id, connection_id)
        self.connections.discard_room(connection_id, room_id)
        if result.deleted:
            return []
        if result.was_ready and len(result.remaining_members) < self.rooms.capacity:
            for member in result.remaining_members:
                self.connections.set_state(member, ConnectionState.JOINED)
        return [Delivery(member, UserLeftMessage(userId=connection_id)) for member in result.remaining_members]

    @staticmethod
    def _error(connection_id: str, code: str, message: str, room_id: Optional[str] = None) -> Delivery:
        logger.warning(f"Rejected event from {connection_id}: {code} ({message})")
        return Delivery(connection_id, ErrorMessage(code=code, message=message, roomId=room_id))

    # ---------- delivery (called without the lock) ---------- #

    async def _deliver(self, deliveries: List[Delivery]):
        by_target: Dict[str, List[Delivery]] = {}
        for delivery in deliveries:
            by_target.setdefault(delivery.target, []).append(delivery)
        if by_target:
            await asyncio.gather(*(self._send_all(target, batch) for target, batch in by_target.items()))

    def _still_routable(self, delivery: Delivery) -> bool:
        if delivery.room_id is None:
            return True
        return (self.rooms.is_member(delivery.room_id, delivery.target)
                and self.rooms.is_member(delivery.room_id, delivery.sender))

    async def _send_all(self, target: str, batch: List[Delivery]):
        for delivery in batch:
            payload = delivery.message.model_dump()
            connection = self.connections.get(target)
            if connection is None:
                logger.debug(f"Dropping {payload['type']} for {target}: connection is gone")
                return
            if not self._still_routable(delivery):
                logger.debug(f"Dropping {payload['type']} for {target}: no longer shares room {delivery.room_id} with {delivery.sender}")
                continue
            try:
                await connection.send(payload)
            except Exception as e:
                logger.warning(f"Error sending {payload['type']} to {target}: {e}")
                return
