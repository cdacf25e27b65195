import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Set

logger = logging.getLogger(__name__)

SendCallable = Callable[[dict], Awaitable[None]]


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    JOINED = "joined"
    READY = "ready"
    DISCONNECTED = "disconnected"


class ConnectionAlreadyRegistered(Exception):
    pass


@dataclass
class Connection:
    """One live transport session and the rooms it currently belongs to"""
    connection_id: str
    send: SendCallable
    rooms: Set[str] = field(default_factory=set)
    state: ConnectionState = ConnectionState.CONNECTED


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()

    def register(self, connection_id: str, send: SendCallable) -> Connection:
        with self._lock:
            if connection_id in self._connections:
                raise ConnectionAlreadyRegistered(connection_id)
            connection = Connection(connection_id=connection_id, send=send)
            self._connections[connection_id] = connection
        logger.debug(f"Registered connection {connection_id} (total: {len(self._connections)})")
        return connection

    def unregister(self, connection_id: str) -> Set[str]:
        """Remove the connection and return the rooms it belonged to"""
        with self._lock:
            connection = self._connections.pop(connection_id, None)
        if connection is None:
            return set()
        connection.state = ConnectionState.DISCONNECTED
        rooms = set(connection.rooms)
        connection.rooms.clear()
        logger.debug(f"Unregistered connection {connection_id}, was in rooms {sorted(rooms)}")
        return rooms

    def get(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    def add_room(self, connection_id: str, room_id: str):
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is not None:
                connection.rooms.add(room_id)

    def discard_room(self, connection_id: str, room_id: str):
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is not None:
                connection.rooms.discard(room_id)
                if not connection.rooms:
                    connection.state = ConnectionState.CONNECTED

    def set_state(self, connection_id: str, state: ConnectionState):
        with self._lock:
            connection = self._connections.get(connection_id)
            if connection is not None:
                connection.state = state

    def rooms_of(self, connection_id: str) -> Set[str]:
        with self._lock:
            connection = self._connections.get(connection_id)
            return set(connection.rooms) if connection else set()

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
