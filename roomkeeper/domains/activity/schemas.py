from pydantic import Field
from typing import Optional, List

from roomkeeper.core.schemas import CamelModel
from roomkeeper.domains.activity.entities import ActivityType


class ActivityCreate(CamelModel):
    room_id: str = Field(..., min_length=1)
    activity_type: ActivityType = ActivityType.ROOM_VISIT
    last_page_id: Optional[str] = None
    last_page_name: Optional[str] = None


class ActivityResponse(CamelModel):
    user_id: str
    user_name: Optional[str] = None
    activity_type: ActivityType
    room_id: str
    room_name: Optional[str] = None
    activity_timestamp: int
    last_page_id: Optional[str] = None
    last_page_name: Optional[str] = None


class RecentRoomsResponse(CamelModel):
    rooms: List[ActivityResponse]
