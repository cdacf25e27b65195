import pytest

from connection_registry import ConnectionAlreadyRegistered, ConnectionRegistry, ConnectionState


async def _noop_send(message):
    pass


def test_register_creates_empty_connection():
    registry = ConnectionRegistry()
    connection = registry.register("c1", _noop_send)
    assert connection.rooms == set()
    assert connection.state == ConnectionState.CONNECTED
    assert "c1" in registry
    assert len(registry) == 1


def test_register_twice_is_an_error():
    registry = ConnectionRegistry()
    registry.register("c1", _noop_send)
    with pytest.raises(ConnectionAlreadyRegistered):
        registry.register("c1", _noop_send)


def test_unregister_returns_rooms_and_removes_entry():
    registry = ConnectionRegistry()
    connection = registry.register("c1", _noop_send)
    registry.add_room("c1", "r1")
    registry.add_room("c1", "r2")

    assert registry.unregister("c1") == {"r1", "r2"}
    assert "c1" not in registry
    assert registry.get("c1") is None
    assert connection.state == ConnectionState.DISCONNECTED


def test_unregister_unknown_connection_returns_empty_set():
    assert ConnectionRegistry().unregister("ghost") == set()


def test_discarding_last_room_resets_state():
    registry = ConnectionRegistry()
    registry.register("c1", _noop_send)
    registry.add_room("c1", "r1")
    registry.set_state("c1", ConnectionState.READY)

    registry.discard_room("c1", "r1")
    assert registry.rooms_of("c1") == set()
    assert registry.get("c1").state == ConnectionState.CONNECTED
