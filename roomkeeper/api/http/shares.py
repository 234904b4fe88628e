from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.auth import Requester, get_current_requester
from roomkeeper.core.config import Settings, get_settings
from roomkeeper.core.db import get_db
from roomkeeper.core.exceptions import RoomKeeperError
from roomkeeper.domains.rooms.services import RoomLifecycleService
from roomkeeper.domains.sharing.entities import Viewport
from roomkeeper.domains.sharing.schemas import (
    LinkRequest, LinkResponse, AddressResponse, ViewportSchema,
    ShareCreate, ShareResponse, ShareCreateResponse, ShareListResponse, ShareResolveResponse
)
from roomkeeper.domains.sharing.services import ShareLinkService

router = APIRouter(prefix="/api", tags=["sharing"])


@router.post("/rooms/{room_id}/links", response_model=LinkResponse)
async def create_link(
    room_id: str,
    link_data: LinkRequest,
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Build share links for a view of the room"""
    room_service = RoomLifecycleService(db, app_settings.lifecycle_max_attempts)

    try:
        room = await room_service.get_room(room_id)
    except RoomKeeperError as e:
        raise e.to_http()

    viewport = None
    if link_data.viewport is not None:
        viewport = Viewport(
            link_data.viewport.x, link_data.viewport.y, link_data.viewport.width, link_data.viewport.height
        )

    link_service = ShareLinkService(app_settings=app_settings)
    publish_url: Optional[str] = None
    if room.publish and room.publish_slug:
        publish_url = link_service.publish_link(room.publish_slug, link_data.page_id, viewport)

    return LinkResponse(
        room_id=room.id,
        url=link_service.room_link(room.id, link_data.page_id, viewport, form=link_data.form),
        semantic_url=link_service.semantic_link(room.id),
        publish_url=publish_url
    )


@router.get("/addresses/resolve", response_model=AddressResponse)
async def resolve_address(
    address: str = Query(..., min_length=1),
    app_settings: Settings = Depends(get_settings)
):
    """Decode a share address"""
    link_service = ShareLinkService(app_settings=app_settings)

    try:
        decoded = link_service.resolve_address(address)
    except RoomKeeperError as e:
        raise e.to_http()

    viewport = None
    if decoded.viewport is not None:
        viewport = ViewportSchema(
            x=decoded.viewport.x, y=decoded.viewport.y,
            width=decoded.viewport.width, height=decoded.viewport.height
        )

    return AddressResponse(
        room_id=decoded.room_id,
        page_id=decoded.page_id,
        page_index=decoded.page_index,
        resolved_page_id=decoded.resolved_page_id,
        viewport=viewport,
        form=decoded.form,
        is_publish=decoded.is_publish
    )


@router.post("/rooms/{room_id}/shares", response_model=ShareCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_share(
    room_id: str,
    share_data: ShareCreate,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Issue a signed share grant for the room"""
    link_service = ShareLinkService(db, app_settings=app_settings)

    try:
        share, token, url = await link_service.create_share(
            room_id,
            requester.user_id,
            share_data.permission,
            page_id=share_data.page_id,
            description=share_data.description,
            max_access=share_data.max_access
        )
    except RoomKeeperError as e:
        raise e.to_http()

    return ShareCreateResponse(share=ShareResponse.model_validate(share), token=token, url=url)


@router.get("/rooms/{room_id}/shares", response_model=ShareListResponse)
async def list_shares(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Active share grants of the room"""
    link_service = ShareLinkService(db, app_settings=app_settings)

    try:
        shares = await link_service.list_shares(room_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return ShareListResponse(shares=[ShareResponse.model_validate(share) for share in shares])


@router.get("/shares/resolve", response_model=ShareResolveResponse)
async def resolve_share(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Verify a share token and report what it grants"""
    link_service = ShareLinkService(db, app_settings=app_settings)

    try:
        resolution = await link_service.resolve_share(token)
    except RoomKeeperError as e:
        raise e.to_http()

    return ShareResolveResponse(
        share_id=resolution.share.share_id,
        room_id=resolution.room.id,
        page_id=resolution.page_id,
        effective_permission=resolution.effective_permission,
        access_count=resolution.share.access_count
    )


@router.delete("/shares/{share_id}", response_model=ShareResponse)
async def deactivate_share(
    share_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Revoke a share grant"""
    link_service = ShareLinkService(db, app_settings=app_settings)

    try:
        share = await link_service.deactivate_share(share_id, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return ShareResponse.model_validate(share)
