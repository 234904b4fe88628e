import pytest

from roomkeeper.core.exceptions import InvalidTransitionError
from roomkeeper.domains.permissions import PermissionLevel
from roomkeeper.domains.rooms.entities import Room
from roomkeeper.domains.rooms.lifecycle import RoomLifecycle


def make_room(**overrides) -> Room:
    room = Room.create_room(room_id="room-1", name="Sketches", owner_id="owner")
    return room.with_changes(overrides) if overrides else room


def test_new_room_is_private_with_editor_default():
    room = make_room()
    assert not room.shared and not room.publish and not room.plaza
    assert room.permission == PermissionLevel.EDITOR
    assert room.max_permission == PermissionLevel.EDITOR
    RoomLifecycle.check_invariants(room)


def test_share_and_unshare():
    assert RoomLifecycle.share(make_room()) == {"shared": True}
    assert RoomLifecycle.unshare(make_room(shared=True)) == {"shared": False}


def test_publish_sets_slug_only_once():
    assert RoomLifecycle.publish(make_room(), "slug-a") == {"publish": True, "publish_slug": "slug-a"}
    assert RoomLifecycle.publish(make_room(publish_slug="slug-a"), "slug-b") == {"publish": True}


def test_unpublish_withdraws_plaza_in_same_change():
    room = make_room(publish=True, plaza=True)
    changes = RoomLifecycle.unpublish(room)
    assert changes == {"publish": False, "plaza": False}
    RoomLifecycle.check_invariants(room.with_changes(changes))


def test_plaza_requires_publish():
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.set_plaza(make_room(), True)
    assert RoomLifecycle.set_plaza(make_room(publish=True), True) == {"plaza": True}
    assert RoomLifecycle.set_plaza(make_room(), False) == {"plaza": False}


def test_lock_history_downgrades_editor():
    changes = RoomLifecycle.lock_history(make_room(), "owner", "Owner", now=1234)
    assert changes == {
        "history_locked": True,
        "history_lock_timestamp": 1234,
        "history_locked_by": "owner",
        "history_locked_by_name": "Owner",
        "permission": PermissionLevel.ASSIST,
    }


def test_lock_history_keeps_lower_levels():
    changes = RoomLifecycle.lock_history(make_room(permission=PermissionLevel.VIEWER), "owner")
    assert "permission" not in changes


def test_unlock_history_does_not_restore_editor():
    room = make_room()
    locked = room.with_changes(RoomLifecycle.lock_history(room, "owner"))
    unlocked = locked.with_changes(RoomLifecycle.unlock_history(locked))

    assert not unlocked.history_locked
    assert unlocked.history_lock_timestamp is None
    assert unlocked.history_locked_by is None
    assert unlocked.history_locked_by_name is None
    assert unlocked.permission == PermissionLevel.ASSIST


def test_set_permission_rejects_editor_while_locked():
    room = make_room(history_locked=True, permission=PermissionLevel.ASSIST)
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.set_permission(room, PermissionLevel.EDITOR)
    assert RoomLifecycle.set_permission(room, PermissionLevel.VIEWER) == {"permission": PermissionLevel.VIEWER}


def test_set_permission_rejects_level_above_ceiling():
    room = make_room(max_permission=PermissionLevel.ASSIST, permission=PermissionLevel.ASSIST)
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.set_permission(room, PermissionLevel.EDITOR)


def test_lowering_ceiling_clamps_permission():
    changes = RoomLifecycle.set_permission(make_room(), max_permission=PermissionLevel.VIEWER)
    assert changes == {"permission": PermissionLevel.VIEWER, "max_permission": PermissionLevel.VIEWER}


def test_check_invariants_rejects_bad_states():
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.check_invariants(make_room(plaza=True))
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.check_invariants(make_room(history_locked=True))
    with pytest.raises(InvalidTransitionError):
        RoomLifecycle.check_invariants(make_room(max_permission=PermissionLevel.VIEWER))


def test_apply_returns_checked_room():
    room = make_room(publish=True)
    updated = RoomLifecycle.apply(room, RoomLifecycle.set_plaza(room, True))
    assert updated.plaza and updated.publish
    assert room.plaza is False
