from typing import Optional, List

from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.db.models.sharing import ShareConfig as ShareConfigModel
from roomkeeper.domains.sharing.entities import ShareConfig


class ShareConfigRepository:
    """Repository for share configs"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, share: ShareConfig) -> ShareConfig:
        db_share = ShareConfigModel(
            share_id=share.share_id,
            room_id=share.room_id,
            page_id=share.page_id,
            permission=share.permission,
            is_active=share.is_active,
            created_by=share.created_by,
            created_at=share.created_at,
            last_accessed=share.last_accessed,
            access_count=share.access_count,
            max_access=share.max_access,
            description=share.description
        )

        self.session.add(db_share)
        await self.session.commit()
        await self.session.refresh(db_share)
        return self._to_domain(db_share)

    async def get(self, share_id: str) -> Optional[ShareConfig]:
        result = await self.session.execute(
            select(ShareConfigModel)
            .where(ShareConfigModel.share_id == share_id)
            .execution_options(populate_existing=True)
        )
        db_share = result.scalar_one_or_none()
        return self._to_domain(db_share) if db_share else None

    async def list_by_room(self, room_id: str, include_inactive: bool = False) -> List[ShareConfig]:
        """Share configs of a room, newest first"""
        query = select(ShareConfigModel).where(ShareConfigModel.room_id == room_id)
        if not include_inactive:
            query = query.where(ShareConfigModel.is_active.is_(True))

        result = await self.session.execute(query.order_by(ShareConfigModel.created_at.desc()))
        return [self._to_domain(db_share) for db_share in result.scalars().all()]

    async def deactivate(self, share_id: str) -> bool:
        result = await self.session.execute(
            update(ShareConfigModel)
            .where(ShareConfigModel.share_id == share_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def record_access(self, share_id: str, now: int) -> bool:
        """Count one use of an active share; False if it is inactive or used up"""
        result = await self.session.execute(
            update(ShareConfigModel)
            .where(
                ShareConfigModel.share_id == share_id,
                ShareConfigModel.is_active.is_(True),
                or_(
                    ShareConfigModel.max_access.is_(None),
                    ShareConfigModel.access_count < ShareConfigModel.max_access
                )
            )
            .values(access_count=ShareConfigModel.access_count + 1, last_accessed=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_share: ShareConfigModel) -> ShareConfig:
        """Convert the DB model to a domain entity"""
        return ShareConfig(
            share_id=db_share.share_id,
            room_id=db_share.room_id,
            permission=db_share.permission,
            created_by=db_share.created_by,
            created_at=db_share.created_at,
            page_id=db_share.page_id,
            is_active=db_share.is_active,
            last_accessed=db_share.last_accessed,
            access_count=db_share.access_count,
            max_access=db_share.max_access,
            description=db_share.description
        )
