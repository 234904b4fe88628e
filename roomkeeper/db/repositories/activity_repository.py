from typing import List

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.db.models.activity import UserActivity as UserActivityModel
from roomkeeper.domains.activity.entities import ActivityType, UserActivity


class ActivityRepository:
    """Repository for room usage records"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, activity: UserActivity) -> UserActivity:
        db_activity = UserActivityModel(
            user_id=activity.user_id,
            user_name=activity.user_name,
            activity_type=activity.activity_type.value,
            room_id=activity.room_id,
            room_name=activity.room_name,
            activity_timestamp=activity.activity_timestamp,
            last_page_id=activity.last_page_id,
            last_page_name=activity.last_page_name
        )

        self.session.add(db_activity)
        await self.session.commit()
        await self.session.refresh(db_activity)
        return self._to_domain(db_activity)

    async def recent_visits(self, user_id: str, limit: int = 10) -> List[UserActivity]:
        """Latest visit of each room the user has visited, newest first"""
        latest = (
            select(
                UserActivityModel.room_id,
                func.max(UserActivityModel.activity_timestamp).label("latest")
            )
            .where(
                UserActivityModel.user_id == user_id,
                UserActivityModel.activity_type == ActivityType.ROOM_VISIT.value
            )
            .group_by(UserActivityModel.room_id)
            .subquery()
        )

        result = await self.session.execute(
            select(UserActivityModel)
            .join(
                latest,
                and_(
                    UserActivityModel.room_id == latest.c.room_id,
                    UserActivityModel.activity_timestamp == latest.c.latest
                )
            )
            .where(
                UserActivityModel.user_id == user_id,
                UserActivityModel.activity_type == ActivityType.ROOM_VISIT.value
            )
            .order_by(UserActivityModel.activity_timestamp.desc(), UserActivityModel.id.desc())
        )

        activities = []
        seen = set()
        # Two visits in the same millisecond both match the join
        for db_activity in result.scalars().all():
            if db_activity.room_id in seen:
                continue
            seen.add(db_activity.room_id)
            activities.append(self._to_domain(db_activity))
            if len(activities) >= limit:
                break
        return activities

    def _to_domain(self, db_activity: UserActivityModel) -> UserActivity:
        """Convert the DB model to a domain entity"""
        return UserActivity(
            id=db_activity.id,
            user_id=db_activity.user_id,
            user_name=db_activity.user_name,
            activity_type=ActivityType(db_activity.activity_type),
            room_id=db_activity.room_id,
            room_name=db_activity.room_name,
            activity_timestamp=db_activity.activity_timestamp,
            last_page_id=db_activity.last_page_id,
            last_page_name=db_activity.last_page_name
        )
