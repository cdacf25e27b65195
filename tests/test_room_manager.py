import pytest

from config.signaling_config import OverflowPolicy
from room_manager import AlreadyInRoom, RoomFullError, RoomRegistry


def test_first_join_creates_room_without_ready():
    rooms = RoomRegistry()
    result = rooms.join("r1", "x")
    assert result.members == ["x"]
    assert result.became_ready is False
    assert "r1" in rooms


def test_second_join_becomes_ready_and_keeps_order():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    result = rooms.join("r1", "y")
    assert result.members == ["x", "y"]
    assert result.became_ready is True
    assert rooms.is_ready("r1")


def test_duplicate_join_is_rejected():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    with pytest.raises(AlreadyInRoom):
        rooms.join("r1", "x")
    assert rooms.members("r1") == ["x"]


def test_reject_policy_leaves_membership_unchanged():
    rooms = RoomRegistry(overflow_policy=OverflowPolicy.REJECT)
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    with pytest.raises(RoomFullError) as exc_info:
        rooms.join("r1", "z")
    assert exc_info.value.code == "room-full"
    assert rooms.members("r1") == ["x", "y"]


def test_accept_policy_grows_past_capacity_without_second_ready():
    rooms = RoomRegistry(overflow_policy=OverflowPolicy.ACCEPT)
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    result = rooms.join("r1", "z")
    assert result.members == ["x", "y", "z"]
    assert result.became_ready is False
    assert result.evicted is None


def test_evict_policy_replaces_oldest_member():
    rooms = RoomRegistry(overflow_policy=OverflowPolicy.EVICT)
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    result = rooms.join("r1", "z")
    assert result.evicted == "x"
    assert result.members == ["y", "z"]
    assert result.became_ready is True


def test_leave_reports_remaining_members():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    result = rooms.leave("r1", "y")
    assert result.remaining_members == ["x"]
    assert result.deleted is False
    assert result.was_ready is True


def test_last_leave_deletes_room():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    result = rooms.leave("r1", "x")
    assert result.deleted is True
    assert result.remaining_members == []
    assert "r1" not in rooms
    assert len(rooms) == 0


def test_leave_of_non_member_is_noop():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    result = rooms.leave("r1", "ghost")
    assert result.deleted is False
    assert result.remaining_members == ["x"]
    assert rooms.leave("missing", "x").deleted is False


def test_rejoin_after_vacated_room_starts_fresh_cycle():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    rooms.leave("r1", "x")
    rooms.leave("r1", "y")

    assert rooms.join("r1", "a").became_ready is False
    assert rooms.join("r1", "b").became_ready is True


def test_members_except():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    rooms.join("r1", "y")
    assert rooms.members_except("r1", "x") == ["y"]
    assert rooms.members_except("r1", "outsider") == ["x", "y"]
    assert rooms.members_except("nope", "x") == []


def test_snapshot_is_a_copy():
    rooms = RoomRegistry()
    rooms.join("r1", "x")
    snapshot = rooms.snapshot()
    snapshot[0].members.append("intruder")
    assert rooms.members("r1") == ["x"]


def test_capacity_below_two_is_refused():
    with pytest.raises(ValueError):
        RoomRegistry(capacity=1)


def test_larger_capacity_readies_when_full():
    rooms = RoomRegistry(capacity=3)
    assert rooms.join("r1", "a").became_ready is False
    assert rooms.join("r1", "b").became_ready is False
    assert rooms.join("r1", "c").became_ready is True
