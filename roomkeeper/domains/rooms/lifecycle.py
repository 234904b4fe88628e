"""Room lifecycle state machine.

Every transition inspects a ``Room`` and returns the dict of fields to write.
Illegal transitions raise ``InvalidTransitionError`` before anything is
returned, so a rejected call never produces a partial change set.

    private --share--> shared
    any --publish--> published --set_plaza(True)--> plaza
    published/plaza --unpublish--> not published, not plaza
    any --lock_history--> history locked (editor downgraded to assist)
"""

from typing import Optional, Dict, Any

from roomkeeper.core.clock import now_millis
from roomkeeper.core.exceptions import InvalidTransitionError
from roomkeeper.domains.permissions import PermissionLevel, PermissionPolicy
from roomkeeper.domains.rooms.entities import Room


class RoomLifecycle:
    """Validates lifecycle transitions and computes their field changes"""

    @staticmethod
    def share(room: Room) -> Dict[str, Any]:
        return {"shared": True}

    @staticmethod
    def unshare(room: Room) -> Dict[str, Any]:
        return {"shared": False}

    @staticmethod
    def publish(room: Room, slug: Optional[str] = None) -> Dict[str, Any]:
        """Mark the room published; the slug is only written if none is assigned yet"""
        changes: Dict[str, Any] = {"publish": True}
        if slug and not room.publish_slug:
            changes["publish_slug"] = slug
        return changes

    @staticmethod
    def unpublish(room: Room) -> Dict[str, Any]:
        """Withdraw the room; plaza listing is withdrawn with it"""
        changes: Dict[str, Any] = {"publish": False}
        if room.plaza:
            changes["plaza"] = False
        return changes

    @staticmethod
    def set_plaza(room: Room, listed: bool) -> Dict[str, Any]:
        if listed and not room.publish:
            raise InvalidTransitionError("Room must be published before it can be listed on the plaza")
        return {"plaza": listed}

    @staticmethod
    def lock_history(
        room: Room,
        actor_id: str,
        actor_name: Optional[str] = None,
        now: Optional[int] = None
    ) -> Dict[str, Any]:
        """Freeze existing content; editor is downgraded to assist in the same write"""
        changes: Dict[str, Any] = {
            "history_locked": True,
            "history_lock_timestamp": now if now is not None else now_millis(),
            "history_locked_by": actor_id,
            "history_locked_by_name": actor_name,
        }
        if room.permission == PermissionLevel.EDITOR:
            changes["permission"] = PermissionLevel.ASSIST
        return changes

    @staticmethod
    def unlock_history(room: Room) -> Dict[str, Any]:
        # A downgraded permission stays downgraded; the owner re-grants editor explicitly
        return {
            "history_locked": False,
            "history_lock_timestamp": None,
            "history_locked_by": None,
            "history_locked_by_name": None,
        }

    @staticmethod
    def set_permission(
        room: Room,
        permission: Optional[PermissionLevel] = None,
        max_permission: Optional[PermissionLevel] = None
    ) -> Dict[str, Any]:
        """Change the default permission and/or its ceiling.

        An explicit ``permission`` above the ceiling is rejected, as is editor
        while history is locked. Lowering only the ceiling clamps the current
        permission down with it.
        """
        changes: Dict[str, Any] = {}
        ceiling = max_permission if max_permission is not None else room.max_permission

        if permission is not None:
            if PermissionPolicy.compare(permission, ceiling) > 0:
                raise InvalidTransitionError(
                    f"Permission {permission.value} exceeds the maximum {ceiling.value}"
                )
            if room.history_locked and permission not in PermissionPolicy.allowed_levels_under_history_lock():
                raise InvalidTransitionError(
                    f"Permission {permission.value} is not allowed while history is locked"
                )
            changes["permission"] = permission
        elif PermissionPolicy.compare(room.permission, ceiling) > 0:
            changes["permission"] = PermissionPolicy.constrain(room.permission, ceiling, room.history_locked)

        if max_permission is not None:
            changes["max_permission"] = max_permission

        return changes

    @staticmethod
    def check_invariants(room: Room) -> None:
        """Raise if the room is in a state no transition may produce"""
        if room.plaza and not room.publish:
            raise InvalidTransitionError("A plaza room must be published")
        if room.history_locked and room.permission == PermissionLevel.EDITOR:
            raise InvalidTransitionError("Editor permission is not allowed while history is locked")
        if PermissionPolicy.compare(room.permission, room.max_permission) > 0:
            raise InvalidTransitionError("Permission exceeds the room's maximum permission")

    @staticmethod
    def apply(room: Room, changes: Dict[str, Any]) -> Room:
        """Room as it will be written, after checking invariants"""
        updated = room.with_changes(changes)
        RoomLifecycle.check_invariants(updated)
        return updated
