from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.auth import Requester, get_current_requester
from roomkeeper.core.db import get_db
from roomkeeper.core.exceptions import RoomKeeperError
from roomkeeper.domains.activity.schemas import ActivityCreate, ActivityResponse, RecentRoomsResponse
from roomkeeper.domains.activity.services import ActivityService

router = APIRouter(prefix="/api", tags=["activity"])


@router.post("/activities", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def record_activity(
    activity_data: ActivityCreate,
    requester: Requester = Depends(get_current_requester),
    db: AsyncSession = Depends(get_db)
):
    """Record that the requester used a room"""
    activity_service = ActivityService(db)

    try:
        activity = await activity_service.record(activity_data, requester)
    except RoomKeeperError as e:
        raise e.to_http()

    return ActivityResponse.model_validate(activity)


@router.get("/users/{user_id}/recent-rooms", response_model=RecentRoomsResponse)
async def recent_rooms(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Rooms the user visited most recently"""
    activity_service = ActivityService(db)
    activities = await activity_service.recent_rooms(user_id, limit)
    return RecentRoomsResponse(rooms=[ActivityResponse.model_validate(activity) for activity in activities])
