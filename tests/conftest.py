import pytest
from fastapi.testclient import TestClient

from config.signaling_config import OverflowPolicy, SignalingSettings
from connection_registry import ConnectionRegistry
from main import create_app
from room_manager import RoomRegistry
from session_coordinator import SessionCoordinator


class Recorder:
    """Stands in for a websocket's send_json"""

    def __init__(self):
        self.messages = []

    async def __call__(self, message: dict):
        self.messages.append(message)

    def of_type(self, message_type: str):
        return [m for m in self.messages if m["type"] == message_type]

    def types(self):
        return [m["type"] for m in self.messages]

    def clear(self):
        self.messages.clear()


def _join(ws, room_id):
    """Join a room over a test websocket and return whatever this socket was sent as a result"""
    ws.send_json({"type": "join-room", "roomId": room_id})
    # Events on one socket are handled in order, so the error reply to this
    # unknown event means the join has been applied.
    ws.send_json({"type": "noop"})
    seen = []
    while True:
        message = ws.receive_json()
        if message["type"] == "error" and message["code"] == "invalid-event":
            return seen
        seen.append(message)


def make_coordinator(policy=OverflowPolicy.REJECT, capacity=2, max_rooms=1) -> SessionCoordinator:
    return SessionCoordinator(
        rooms=RoomRegistry(capacity=capacity, overflow_policy=policy),
        connections=ConnectionRegistry(),
        max_rooms_per_connection=max_rooms,
    )


@pytest.fixture
def coordinator():
    return make_coordinator()


@pytest.fixture
def connect(coordinator):
    async def _connect(connection_id: str) -> Recorder:
        recorder = Recorder()
        await coordinator.connect(connection_id, recorder)
        recorder.clear()
        return recorder
    return _connect


@pytest.fixture
def settings():
    return SignalingSettings(environment="test")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as test_client:
        yield test_client
