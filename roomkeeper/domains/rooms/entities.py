from typing import Optional, List, Dict, Any

from roomkeeper.core.clock import now_millis
from roomkeeper.domains.permissions.entities import PermissionLevel
from roomkeeper.domains.sharing.entities import RoomRoute

# Fields that only lifecycle/permission transitions may write
GOVERNANCE_FIELDS = frozenset({
    "permission",
    "max_permission",
    "shared",
    "publish",
    "plaza",
    "history_locked",
    "history_lock_timestamp",
    "history_locked_by",
    "history_locked_by_name",
    "publish_slug",
})

# Fields the owner edits freely through a partial update
DESCRIPTIVE_FIELDS = frozenset({
    "name",
    "description",
    "tags",
    "thumbnail",
    "cover_page_id",
})


class Room:
    """A collaborative whiteboard document and its governance record"""

    def __init__(
        self,
        id: str,
        name: str,
        owner_id: str,
        owner_name: Optional[str] = None,
        permission: PermissionLevel = PermissionLevel.EDITOR,
        max_permission: PermissionLevel = PermissionLevel.EDITOR,
        shared: bool = False,
        publish: bool = False,
        plaza: bool = False,
        history_locked: bool = False,
        history_lock_timestamp: Optional[int] = None,
        history_locked_by: Optional[str] = None,
        history_locked_by_name: Optional[str] = None,
        publish_slug: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        thumbnail: Optional[str] = None,
        cover_page_id: Optional[str] = None,
        created_at: Optional[int] = None,
        last_modified: Optional[int] = None
    ):
        self.id = id
        self.name = name
        self.owner_id = owner_id
        self.owner_name = owner_name
        self.permission = permission
        self.max_permission = max_permission
        self.shared = shared
        self.publish = publish
        self.plaza = plaza
        self.history_locked = history_locked
        self.history_lock_timestamp = history_lock_timestamp
        self.history_locked_by = history_locked_by
        self.history_locked_by_name = history_locked_by_name
        self.publish_slug = publish_slug
        self.description = description
        self.tags = list(tags) if tags else []
        self.thumbnail = thumbnail
        self.cover_page_id = cover_page_id
        self.created_at = created_at or now_millis()
        self.last_modified = last_modified or self.created_at

    @property
    def route(self) -> RoomRoute:
        """Semantic route decoded from the room id"""
        return RoomRoute.from_room_id(self.id)

    def is_owner(self, user_id: Optional[str]) -> bool:
        """Whether the user owns the room"""
        return user_id is not None and user_id == self.owner_id

    def with_changes(self, changes: Dict[str, Any]) -> "Room":
        """Copy of the room with the given fields replaced"""
        values = self.to_dict()
        values.update(changes)
        return Room(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the room to a dict of constructor arguments"""
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "owner_name": self.owner_name,
            "permission": self.permission,
            "max_permission": self.max_permission,
            "shared": self.shared,
            "publish": self.publish,
            "plaza": self.plaza,
            "history_locked": self.history_locked,
            "history_lock_timestamp": self.history_lock_timestamp,
            "history_locked_by": self.history_locked_by,
            "history_locked_by_name": self.history_locked_by_name,
            "publish_slug": self.publish_slug,
            "description": self.description,
            "tags": list(self.tags),
            "thumbnail": self.thumbnail,
            "cover_page_id": self.cover_page_id,
            "created_at": self.created_at,
            "last_modified": self.last_modified,
        }

    @classmethod
    def create_room(
        cls,
        room_id: str,
        name: str,
        owner_id: str,
        owner_name: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> "Room":
        """New private room with unrestricted default permission"""
        created_at = now_millis()
        return cls(
            id=room_id,
            name=name,
            owner_id=owner_id,
            owner_name=owner_name,
            description=description,
            tags=tags,
            created_at=created_at,
            last_modified=created_at
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Room):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return (
            f"Room(id={self.id}, shared={self.shared}, publish={self.publish}, "
            f"plaza={self.plaza}, permission={self.permission.value}, locked={self.history_locked})"
        )


class AccessReason:
    OWNER = "owner"
    VISITOR = "visitor"
    SHARE = "share"


class AccessDecision:
    """What a requester may do to a room right now"""

    def __init__(
        self,
        room_id: str,
        is_owner: bool,
        effective_permission: PermissionLevel,
        reason: str,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
        history_locked: bool = False
    ):
        self.room_id = room_id
        self.is_owner = is_owner
        self.effective_permission = effective_permission
        self.reason = reason
        self.user_id = user_id
        self.user_name = user_name
        self.history_locked = history_locked

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def __repr__(self) -> str:
        return f"AccessDecision(room={self.room_id}, level={self.effective_permission.value}, reason={self.reason})"
