from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.exceptions import NotFoundError
from roomkeeper.core.auth import Requester
from roomkeeper.db.repositories.activity_repository import ActivityRepository
from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.domains.activity.entities import UserActivity
from roomkeeper.domains.activity.schemas import ActivityCreate


class ActivityService:
    """Records who used which room"""

    def __init__(self, session: AsyncSession):
        self.activity_repository = ActivityRepository(session)
        self.directory = RoomDirectory(session)

    async def record(self, activity_data: ActivityCreate, requester: Requester) -> UserActivity:
        """Append a usage record for the requester"""
        room = await self.directory.get(activity_data.room_id)
        if not room:
            raise NotFoundError(f"Room {activity_data.room_id} not found")

        activity = UserActivity(
            user_id=requester.user_id,
            user_name=requester.user_name,
            activity_type=activity_data.activity_type,
            room_id=room.id,
            room_name=room.name,
            last_page_id=activity_data.last_page_id,
            last_page_name=activity_data.last_page_name
        )
        return await self.activity_repository.add(activity)

    async def recent_rooms(self, user_id: str, limit: int = 10) -> List[UserActivity]:
        return await self.activity_repository.recent_visits(user_id, limit)
