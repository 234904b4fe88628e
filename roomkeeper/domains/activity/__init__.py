from roomkeeper.domains.activity.entities import ActivityType, UserActivity
from roomkeeper.domains.activity.schemas import ActivityCreate, ActivityResponse, RecentRoomsResponse

__all__ = [
    "ActivityType", "UserActivity",
    "ActivityCreate", "ActivityResponse", "RecentRoomsResponse"
]
