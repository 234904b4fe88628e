from roomkeeper.domains.rooms.entities import Room, AccessDecision, AccessReason
from roomkeeper.domains.rooms.lifecycle import RoomLifecycle
from roomkeeper.domains.rooms.schemas import (
    RoomBase, RoomCreate, RoomUpdate, RoomResponse, RoomListResponse,
    OwnerTransferRequest, PermissionUpdate, PermissionsResponse,
    AccessResponse, PublishRequest, PublishResponse
)

# Services import the repositories, which import these entities; not re-exported

__all__ = [
    "Room", "AccessDecision", "AccessReason",
    "RoomLifecycle",
    "RoomBase", "RoomCreate", "RoomUpdate", "RoomResponse", "RoomListResponse",
    "OwnerTransferRequest", "PermissionUpdate", "PermissionsResponse",
    "AccessResponse", "PublishRequest", "PublishResponse"
]
