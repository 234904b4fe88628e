from pydantic import Field, field_validator
from typing import Optional, List, Dict, Any

from roomkeeper.core.schemas import CamelModel
from roomkeeper.domains.permissions import PermissionLevel
from roomkeeper.domains.rooms.entities import Room


class RoomBase(CamelModel):
    """Descriptive room fields"""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    tags: List[str] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class RoomCreate(RoomBase):
    """Room creation; the id is generated when omitted"""
    id: Optional[str] = Field(None, min_length=1, max_length=255)


class RoomUpdate(CamelModel):
    """Partial update of descriptive fields"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    tags: Optional[List[str]] = None
    thumbnail: Optional[str] = None
    cover_page_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is None:
            raise ValueError('Name cannot be null')
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, v):
        if v is None:
            raise ValueError('Tags cannot be null; send an empty list to clear them')
        return v


class RoomResponse(CamelModel):
    id: str
    name: str
    owner_id: str
    owner_name: Optional[str] = None
    permission: PermissionLevel
    max_permission: PermissionLevel
    shared: bool
    publish: bool
    plaza: bool
    history_locked: bool
    history_lock_timestamp: Optional[int] = None
    history_locked_by: Optional[str] = None
    history_locked_by_name: Optional[str] = None
    publish_slug: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    cover_page_id: Optional[str] = None
    created_at: int
    last_modified: int
    semantic_path: Optional[str] = None

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(**room.to_dict(), semantic_path=room.route.path)


class RoomListResponse(CamelModel):
    rooms: List[RoomResponse]
    total: int


class OwnerTransferRequest(CamelModel):
    new_owner_id: str = Field(..., min_length=1)
    new_owner_name: Optional[str] = None


class PermissionUpdate(CamelModel):
    """Wire values are validated by the route so an unknown level is a 400"""
    permission: Optional[str] = None
    max_permission: Optional[str] = None


class PermissionsResponse(CamelModel):
    room_id: str
    permission: PermissionLevel
    max_permission: PermissionLevel
    history_locked: bool
    history_lock_timestamp: Optional[int] = None
    history_locked_by: Optional[str] = None
    history_locked_by_name: Optional[str] = None
    available_levels: List[PermissionLevel]


class AccessResponse(CamelModel):
    room_id: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    is_owner: bool
    is_guest: bool
    effective_permission: PermissionLevel
    access_reason: str
    history_locked: bool
    can_edit_new: bool
    can_edit_history: bool


class PublishRequest(CamelModel):
    # Omitted content re-flags the room with its current snapshot
    content: Optional[Dict[str, Any]] = None


class PublishResponse(CamelModel):
    slug: str
    version: int
    room: RoomResponse
