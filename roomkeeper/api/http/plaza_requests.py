from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.auth import Requester, get_current_requester
from roomkeeper.core.config import Settings, get_settings
from roomkeeper.core.db import get_db
from roomkeeper.core.exceptions import RoomKeeperError
from roomkeeper.domains.plaza.entities import PlazaRequestStatus
from roomkeeper.domains.plaza.schemas import (
    PlazaRequestResponse, PlazaRequestListResponse, PlazaRequestStatusResponse
)
from roomkeeper.domains.plaza.services import PlazaRequestService

router = APIRouter(prefix="/api", tags=["plaza"])


@router.post(
    "/rooms/{room_id}/plaza-requests",
    response_model=PlazaRequestResponse,
    status_code=status.HTTP_201_CREATED
)
async def submit_plaza_request(
    room_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Ask an administrator to list the published room on the plaza"""
    plaza_service = PlazaRequestService(db, app_settings.lifecycle_max_attempts)

    try:
        request = await plaza_service.submit(room_id, requester)
    except RoomKeeperError as e:
        raise e.to_http()

    return PlazaRequestResponse.model_validate(request)


@router.get("/rooms/{room_id}/plaza-requests/status", response_model=PlazaRequestStatusResponse)
async def get_plaza_request_status(
    room_id: str,
    db: AsyncSession = Depends(get_db)
):
    plaza_service = PlazaRequestService(db)

    try:
        request_status = await plaza_service.status(room_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return PlazaRequestStatusResponse(room_id=room_id, status=request_status)


@router.get("/admin/plaza-requests", response_model=PlazaRequestListResponse)
async def list_plaza_requests(
    request_status: Optional[PlazaRequestStatus] = Query(None, alias="status"),
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db)
):
    """Review queue; filter by status"""
    plaza_service = PlazaRequestService(db)

    try:
        requests = await plaza_service.list_requests(requester, request_status)
    except RoomKeeperError as e:
        raise e.to_http()

    return PlazaRequestListResponse(requests=[PlazaRequestResponse.model_validate(r) for r in requests])


@router.post("/admin/plaza-requests/{request_id}/approve", response_model=PlazaRequestResponse)
async def approve_plaza_request(
    request_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    """Approve a request and list its room on the plaza"""
    plaza_service = PlazaRequestService(db, app_settings.lifecycle_max_attempts)

    try:
        request = await plaza_service.review(request_id, True, requester)
    except RoomKeeperError as e:
        raise e.to_http()

    return PlazaRequestResponse.model_validate(request)


@router.post("/admin/plaza-requests/{request_id}/reject", response_model=PlazaRequestResponse)
async def reject_plaza_request(
    request_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings)
):
    plaza_service = PlazaRequestService(db, app_settings.lifecycle_max_attempts)

    try:
        request = await plaza_service.review(request_id, False, requester)
    except RoomKeeperError as e:
        raise e.to_http()

    return PlazaRequestResponse.model_validate(request)


@router.delete("/admin/plaza-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plaza_request(
    request_id: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db)
):
    plaza_service = PlazaRequestService(db)

    try:
        await plaza_service.delete(request_id, requester)
    except RoomKeeperError as e:
        raise e.to_http()
