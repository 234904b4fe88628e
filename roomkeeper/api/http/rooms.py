import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.api.deps import get_snapshot_cache
from roomkeeper.core.auth import Requester, get_current_requester, get_optional_requester
from roomkeeper.core.config import Settings, get_settings
from roomkeeper.core.db import get_db
from roomkeeper.core.exceptions import RoomKeeperError
from roomkeeper.domains.permissions import Action, PermissionPolicy
from roomkeeper.domains.publishing.cache import SnapshotCache
from roomkeeper.domains.publishing.services import PublishSnapshotService
from roomkeeper.domains.rooms.schemas import (
    RoomCreate, RoomUpdate, RoomResponse, RoomListResponse, OwnerTransferRequest,
    PermissionUpdate, PermissionsResponse, AccessResponse, PublishRequest, PublishResponse
)
from roomkeeper.domains.rooms.services import AccessEvaluator, RoomLifecycleService

router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@router.get("", response_model=RoomListResponse)
async def list_rooms(
    shared: Optional[bool] = Query(None),
    publish: Optional[bool] = Query(None),
    plaza: Optional[bool] = Query(None),
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """List rooms by visibility and owner"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)
    rooms = await room_service.list_rooms(
        shared=shared, publish=publish, plaza=plaza, owner_id=owner_id, limit=limit, offset=offset
    )
    return RoomListResponse(rooms=[RoomResponse.from_room(room) for room in rooms], total=len(rooms))


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Create a private room owned by the requester"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.create_room(
            room_id=room_data.id or uuid.uuid4().hex,
            name=room_data.name,
            owner_id=requester.user_id,
            owner_name=requester.user_name,
            description=room_data.description,
            tags=room_data.tags
        )
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: str,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Get a room by id"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.get_room(room_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    update_data: RoomUpdate,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Update the room's descriptive fields"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.update_room(
            room_id, requester.user_id, update_data.model_dump(exclude_unset=True)
        )
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache),
    app_settings: Settings = Depends(get_settings)
):
    """Delete a room together with its snapshots, shares and activity; owner or administrator"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.delete_room(room_id, requester.user_id, is_admin=requester.is_admin)
    except RoomKeeperError as e:
        raise e.to_http()

    PublishSnapshotService(db, cache, app_settings.lifecycle_max_attempts).forget_room(room)


@router.post("/{room_id}/transfer", response_model=RoomResponse)
async def transfer_room(
    room_id: str,
    transfer: OwnerTransferRequest,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Hand the room over to another user"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.transfer_owner(
            room_id, requester.user_id, transfer.new_owner_id, transfer.new_owner_name
        )
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.get("/{room_id}/permissions", response_model=PermissionsResponse)
async def get_permissions(
    room_id: str,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Current permission settings and the levels the owner may choose"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.get_room(room_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return _permissions_response(room)


@router.patch("/{room_id}/permissions", response_model=PermissionsResponse)
async def update_permissions(
    room_id: str,
    permission_data: PermissionUpdate,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Change the default permission and/or its ceiling"""
    if permission_data.permission is None and permission_data.max_permission is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="permission or maxPermission is required"
        )

    try:
        permission = (
            PermissionPolicy.parse(permission_data.permission)
            if permission_data.permission is not None else None
        )
        max_permission = (
            PermissionPolicy.parse(permission_data.max_permission)
            if permission_data.max_permission is not None else None
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.set_permission(room_id, requester.user_id, permission, max_permission)
    except RoomKeeperError as e:
        raise e.to_http()

    return _permissions_response(room)


@router.get("/{room_id}/access", response_model=AccessResponse)
async def get_access(
    room_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    user_name: Optional[str] = Query(None, alias="userName"),
    requester: Optional[Requester] = Depends(get_optional_requester),
    db: AsyncSession = Depends(get_db)
):
    """What the requester may do in the room"""
    # A verified bearer identity takes precedence over the query parameters
    if requester is not None:
        user_id, user_name = requester.user_id, requester.user_name

    evaluator = AccessEvaluator(db)

    try:
        decision = await evaluator.evaluate(room_id, user_id, user_name)
    except RoomKeeperError as e:
        raise e.to_http()

    history_locked = decision.history_locked and not decision.is_owner
    return AccessResponse(
        room_id=decision.room_id,
        user_id=decision.user_id,
        user_name=decision.user_name,
        is_owner=decision.is_owner,
        is_guest=decision.is_guest,
        effective_permission=decision.effective_permission,
        access_reason=decision.reason,
        history_locked=decision.history_locked,
        can_edit_new=PermissionPolicy.can_perform(decision.effective_permission, Action.EDIT_NEW, history_locked),
        can_edit_history=PermissionPolicy.can_perform(
            decision.effective_permission, Action.EDIT_HISTORY, history_locked
        )
    )


@router.post("/{room_id}/publish-shared", response_model=RoomResponse)
async def share_room(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Make the room reachable by link"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.share(room_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.post("/{room_id}/unshare-shared", response_model=RoomResponse)
async def unshare_room(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.unshare(room_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.post("/{room_id}/publish-plaza", response_model=RoomResponse)
async def list_on_plaza(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """List a published room on the plaza"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.set_plaza(room_id, requester.user_id, True)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.post("/{room_id}/unpublish-plaza", response_model=RoomResponse)
async def remove_from_plaza(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.set_plaza(room_id, requester.user_id, False)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.post("/{room_id}/publish", response_model=PublishResponse)
async def publish_room(
    room_id: str,
    publish_data: PublishRequest,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache),
    app_settings: Settings = Depends(get_settings)
):
    """Snapshot the room content and publish it under the room's slug"""
    publish_service = PublishSnapshotService(db, cache, app_settings.lifecycle_max_attempts)

    try:
        slug, version = await publish_service.publish(
            room_id, publish_data.content, requester.user_id, requester.user_name
        )
        room = await publish_service.lifecycle.get_room(room_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return PublishResponse(slug=slug, version=version, room=RoomResponse.from_room(room))


@router.post("/{room_id}/unpublish", response_model=RoomResponse)
async def unpublish_room(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Withdraw the room; published snapshots stay resolvable by slug"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.unpublish(room_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.post("/{room_id}/history-lock", response_model=RoomResponse)
async def lock_history(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Freeze existing content; visitors may only add"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.lock_history(room_id, requester.user_id, requester.user_name)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


@router.delete("/{room_id}/history-lock", response_model=RoomResponse)
async def unlock_history(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.unlock_history(room_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return RoomResponse.from_room(room)


def _permissions_response(room) -> PermissionsResponse:
    return PermissionsResponse(
        room_id=room.id,
        permission=room.permission,
        max_permission=room.max_permission,
        history_locked=room.history_locked,
        history_lock_timestamp=room.history_lock_timestamp,
        history_locked_by=room.history_locked_by,
        history_locked_by_name=room.history_locked_by_name,
        available_levels=PermissionPolicy.available_levels(room.max_permission, room.history_locked)
    )
