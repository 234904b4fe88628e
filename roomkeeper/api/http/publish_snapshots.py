from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.api.deps import get_snapshot_cache
from roomkeeper.core.auth import Requester, get_current_requester
from roomkeeper.core.db import get_db
from roomkeeper.core.exceptions import RoomKeeperError
from roomkeeper.domains.publishing.cache import SnapshotCache
from roomkeeper.domains.publishing.schemas import (
    SnapshotWrite, SnapshotMetadata, SnapshotResponse,
    SnapshotHistoryResponse, SnapshotInvalidateResponse
)
from roomkeeper.domains.publishing.services import PublishSnapshotService

router = APIRouter(prefix="/api/publish-snapshots", tags=["publish-snapshots"])


@router.post("/{slug}", response_model=SnapshotMetadata, status_code=status.HTTP_201_CREATED)
async def write_snapshot(
    slug: str,
    snapshot_data: SnapshotWrite,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Store a new version under a slug the requester's room owns"""
    publish_service = PublishSnapshotService(db, cache)

    try:
        snapshot = await publish_service.write_snapshot(
            slug, snapshot_data.content, requester.user_id, requester.user_name
        )
    except RoomKeeperError as e:
        raise e.to_http()

    return SnapshotMetadata.model_validate(snapshot)


@router.get("/{slug}", response_model=SnapshotResponse)
async def get_snapshot(
    slug: str,
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Current published snapshot of a slug"""
    publish_service = PublishSnapshotService(db, cache)

    try:
        snapshot = await publish_service.resolve(slug)
    except RoomKeeperError as e:
        raise e.to_http()

    return SnapshotResponse.model_validate(snapshot)


@router.get("/{slug}/history", response_model=SnapshotHistoryResponse)
async def get_snapshot_history(
    slug: str,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Retained versions of a slug, newest first"""
    publish_service = PublishSnapshotService(db, cache)

    try:
        snapshots = await publish_service.history(slug, limit)
    except RoomKeeperError as e:
        raise e.to_http()

    return SnapshotHistoryResponse(
        slug=slug,
        versions=[SnapshotMetadata.model_validate(snapshot) for snapshot in snapshots]
    )


@router.delete("/{slug}", response_model=SnapshotInvalidateResponse)
async def invalidate_snapshot(
    slug: str,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Remove every version of a slug"""
    publish_service = PublishSnapshotService(db, cache)

    try:
        removed = await publish_service.invalidate(slug, requester.user_id)
    except RoomKeeperError as e:
        raise e.to_http()

    return SnapshotInvalidateResponse(slug=slug, removed=removed)
