from enum import Enum
from typing import Optional

from roomkeeper.core.clock import now_millis


class ActivityType(str, Enum):
    ROOM_VISIT = "room_visit"
    ROOM_CREATE = "room_create"
    ROOM_EDIT = "room_edit"
    ROOM_SHARE = "room_share"


class UserActivity:
    """One usage record: who touched which room, and where they left off"""

    def __init__(
        self,
        user_id: str,
        activity_type: ActivityType,
        room_id: str,
        user_name: Optional[str] = None,
        room_name: Optional[str] = None,
        activity_timestamp: Optional[int] = None,
        last_page_id: Optional[str] = None,
        last_page_name: Optional[str] = None,
        id: Optional[int] = None
    ):
        self.id = id
        self.user_id = user_id
        self.user_name = user_name
        self.activity_type = activity_type
        self.room_id = room_id
        self.room_name = room_name
        self.activity_timestamp = activity_timestamp or now_millis()
        self.last_page_id = last_page_id
        self.last_page_name = last_page_name

    def __repr__(self) -> str:
        return f"UserActivity(user={self.user_id}, type={self.activity_type.value}, room={self.room_id})"
