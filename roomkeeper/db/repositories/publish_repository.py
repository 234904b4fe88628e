from typing import Optional, List

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.db.models.publishing import PublishSnapshot as PublishSnapshotModel
from roomkeeper.domains.publishing.entities import PublishSnapshot


class PublishSnapshotRepository:
    """Repository for published snapshots"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, snapshot: PublishSnapshot) -> Optional[PublishSnapshot]:
        """Insert a snapshot; None if the (slug, version) pair is already taken"""
        db_snapshot = PublishSnapshotModel(
            slug=snapshot.slug,
            room_id=snapshot.room_id,
            version=snapshot.version,
            content=snapshot.content,
            page_count=snapshot.page_count,
            shape_count=snapshot.shape_count,
            published_by_id=snapshot.published_by_id,
            published_by_name=snapshot.published_by_name,
            published_at=snapshot.published_at
        )

        self.session.add(db_snapshot)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return None

        return self._to_domain(db_snapshot)

    async def latest(self, slug: str) -> Optional[PublishSnapshot]:
        """Highest version published under a slug"""
        result = await self.session.execute(
            select(PublishSnapshotModel)
            .where(PublishSnapshotModel.slug == slug)
            .order_by(PublishSnapshotModel.version.desc())
            .limit(1)
        )
        db_snapshot = result.scalar_one_or_none()
        return self._to_domain(db_snapshot) if db_snapshot else None

    async def latest_version(self, slug: str) -> Optional[int]:
        result = await self.session.execute(
            select(func.max(PublishSnapshotModel.version)).where(PublishSnapshotModel.slug == slug)
        )
        return result.scalar()

    async def history(self, slug: str, limit: int = 10) -> List[PublishSnapshot]:
        """Retained versions of a slug, newest first"""
        result = await self.session.execute(
            select(PublishSnapshotModel)
            .where(PublishSnapshotModel.slug == slug)
            .order_by(PublishSnapshotModel.version.desc())
            .limit(limit)
        )
        return [self._to_domain(db_snapshot) for db_snapshot in result.scalars().all()]

    async def delete_by_slug(self, slug: str) -> int:
        """Delete every version of a slug"""
        result = await self.session.execute(
            delete(PublishSnapshotModel)
            .where(PublishSnapshotModel.slug == slug)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount

    def _to_domain(self, db_snapshot: PublishSnapshotModel) -> PublishSnapshot:
        """Convert the DB model to a domain entity"""
        return PublishSnapshot(
            slug=db_snapshot.slug,
            room_id=db_snapshot.room_id,
            version=db_snapshot.version,
            content=db_snapshot.content,
            published_by_id=db_snapshot.published_by_id,
            published_by_name=db_snapshot.published_by_name,
            published_at=db_snapshot.published_at,
            page_count=db_snapshot.page_count,
            shape_count=db_snapshot.shape_count
        )
