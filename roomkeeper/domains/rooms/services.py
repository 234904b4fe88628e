import logging
from typing import Optional, List, Dict, Any, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.config import settings
from roomkeeper.core.exceptions import (
    ConcurrentModificationError, NotFoundError, UnauthorizedError
)
from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.domains.permissions import Action, PermissionLevel, PermissionPolicy
from roomkeeper.domains.rooms.entities import Room, AccessDecision, AccessReason, DESCRIPTIVE_FIELDS
from roomkeeper.domains.rooms.lifecycle import RoomLifecycle

logger = logging.getLogger(__name__)

Transition = Callable[[Room], Dict[str, Any]]


class AccessEvaluator:
    """Single entry point for "what may this requester do to this room"."""

    def __init__(self, session: AsyncSession):
        self.directory = RoomDirectory(session)

    async def evaluate(
        self,
        room_id: str,
        requester_id: Optional[str] = None,
        requester_name: Optional[str] = None
    ) -> AccessDecision:
        """Load the room once and decide the requester's effective permission"""
        room = await self.directory.get(room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return self.decide(room, requester_id, requester_name)

    @staticmethod
    def decide(
        room: Room,
        requester_id: Optional[str] = None,
        requester_name: Optional[str] = None
    ) -> AccessDecision:
        if room.is_owner(requester_id):
            # The owner keeps full control even while history is locked
            return AccessDecision(
                room_id=room.id,
                is_owner=True,
                effective_permission=PermissionLevel.EDITOR,
                reason=AccessReason.OWNER,
                user_id=requester_id,
                user_name=requester_name,
                history_locked=room.history_locked
            )

        level = PermissionPolicy.constrain(room.permission, room.max_permission, room.history_locked)
        return AccessDecision(
            room_id=room.id,
            is_owner=False,
            effective_permission=level,
            reason=AccessReason.VISITOR,
            user_id=requester_id,
            user_name=requester_name,
            history_locked=room.history_locked
        )

    @staticmethod
    def authorize(room: Room, requester_id: Optional[str], action: Action) -> AccessDecision:
        """Raise UnauthorizedError unless the requester may perform the action"""
        decision = AccessEvaluator.decide(room, requester_id)
        # Owner edits are never blocked by the history lock
        history_locked = room.history_locked and not decision.is_owner
        if not PermissionPolicy.can_perform(decision.effective_permission, action, history_locked):
            raise UnauthorizedError(
                f"Permission {decision.effective_permission.value} does not allow {action.value}"
            )
        return decision

    @staticmethod
    def require_owner(room: Room, requester_id: Optional[str]) -> None:
        if not room.is_owner(requester_id):
            raise UnauthorizedError("Only the room owner can perform this action")


class RoomLifecycleService:
    """Applies lifecycle transitions through the room directory.

    Each transition is written as one compare-and-swap keyed on
    ``last_modified``. A lost race re-reads the room and re-runs the
    transition on the fresh state, up to ``max_attempts`` times.
    """

    def __init__(self, session: AsyncSession, max_attempts: Optional[int] = None):
        self.directory = RoomDirectory(session)
        self.max_attempts = max_attempts or settings.lifecycle_max_attempts

    async def get_room(self, room_id: str) -> Room:
        room = await self.directory.get(room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        return room

    async def list_rooms(
        self,
        shared: Optional[bool] = None,
        publish: Optional[bool] = None,
        plaza: Optional[bool] = None,
        owner_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Room]:
        return await self.directory.list(
            shared=shared, publish=publish, plaza=plaza, owner_id=owner_id, limit=limit, offset=offset
        )

    async def create_room(
        self,
        room_id: str,
        name: str,
        owner_id: str,
        owner_name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Room:
        """Create a private room owned by the requester"""
        room = Room.create_room(
            room_id=room_id,
            name=name,
            owner_id=owner_id,
            owner_name=owner_name,
            description=description,
            tags=tags
        )
        created = await self.directory.create(room)
        logger.info("Room %s created by %s", created.id, owner_id)
        return created

    async def update_room(self, room_id: str, requester_id: Optional[str], changes: Dict[str, Any]) -> Room:
        """Update descriptive fields (name, description, tags, thumbnail, cover page)"""
        unknown = set(changes) - DESCRIPTIVE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated here: {', '.join(sorted(unknown))}")

        room = await self.get_room(room_id)
        AccessEvaluator.require_owner(room, requester_id)
        if not changes:
            return room
        return await self.directory.update(room_id, changes)

    async def delete_room(self, room_id: str, requester_id: Optional[str], is_admin: bool = False) -> Room:
        """Delete the room with its snapshots, shares and activity; returns the deleted room.

        Administrators may delete any room.
        """
        room = await self.get_room(room_id)
        if not is_admin:
            AccessEvaluator.require_owner(room, requester_id)
        await self.directory.delete(room_id)
        logger.info("Room %s deleted by %s%s", room_id, requester_id, " (admin)" if is_admin else "")
        return room

    async def transfer_owner(
        self,
        room_id: str,
        requester_id: Optional[str],
        new_owner_id: str,
        new_owner_name: Optional[str] = None
    ) -> Room:
        return await self._transition(
            room_id,
            requester_id,
            lambda room: {"owner_id": new_owner_id, "owner_name": new_owner_name},
            "transfer"
        )

    async def share(self, room_id: str, requester_id: Optional[str]) -> Room:
        return await self._transition(room_id, requester_id, RoomLifecycle.share, "share")

    async def unshare(self, room_id: str, requester_id: Optional[str]) -> Room:
        return await self._transition(room_id, requester_id, RoomLifecycle.unshare, "unshare")

    async def publish(self, room_id: str, requester_id: Optional[str], slug: Optional[str] = None) -> Room:
        return await self._transition(
            room_id, requester_id, lambda room: RoomLifecycle.publish(room, slug), "publish"
        )

    async def unpublish(self, room_id: str, requester_id: Optional[str]) -> Room:
        return await self._transition(room_id, requester_id, RoomLifecycle.unpublish, "unpublish")

    async def set_plaza(
        self,
        room_id: str,
        requester_id: Optional[str],
        listed: bool,
        is_admin: bool = False
    ) -> Room:
        """List or delist a published room; administrators act on approved plaza requests"""
        return await self._transition(
            room_id, requester_id, lambda room: RoomLifecycle.set_plaza(room, listed), "set_plaza", is_admin
        )

    async def lock_history(
        self,
        room_id: str,
        requester_id: Optional[str],
        requester_name: Optional[str] = None
    ) -> Room:
        return await self._transition(
            room_id,
            requester_id,
            lambda room: RoomLifecycle.lock_history(room, requester_id, requester_name),
            "lock_history"
        )

    async def unlock_history(self, room_id: str, requester_id: Optional[str]) -> Room:
        return await self._transition(room_id, requester_id, RoomLifecycle.unlock_history, "unlock_history")

    async def set_permission(
        self,
        room_id: str,
        requester_id: Optional[str],
        permission: Optional[PermissionLevel] = None,
        max_permission: Optional[PermissionLevel] = None
    ) -> Room:
        return await self._transition(
            room_id,
            requester_id,
            lambda room: RoomLifecycle.set_permission(room, permission, max_permission),
            "set_permission"
        )

    async def _transition(
        self,
        room_id: str,
        requester_id: Optional[str],
        transition: Transition,
        name: str,
        is_admin: bool = False
    ) -> Room:
        for attempt in range(1, self.max_attempts + 1):
            room = await self.get_room(room_id)
            if not is_admin:
                AccessEvaluator.require_owner(room, requester_id)

            changes = transition(room)
            changes = {field: value for field, value in changes.items() if getattr(room, field) != value}
            if not changes:
                return room

            RoomLifecycle.apply(room, changes)

            updated = await self.directory.update(room_id, changes, expected_last_modified=room.last_modified)
            if updated is not None:
                logger.info("Room %s: %s applied (%s)", room_id, name, ", ".join(sorted(changes)))
                return updated

            logger.debug("Room %s: %s lost a concurrent update, attempt %d", room_id, name, attempt)

        raise ConcurrentModificationError(
            f"Room {room_id} was modified concurrently; {name} not applied"
        )
