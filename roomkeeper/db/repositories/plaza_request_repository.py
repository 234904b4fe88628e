from typing import Optional, List

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.db.models.plaza import PlazaRequest as PlazaRequestModel
from roomkeeper.domains.plaza.entities import PlazaRequest, PlazaRequestStatus


class PlazaRequestRepository:
    """Repository for plaza listing requests"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, request: PlazaRequest) -> PlazaRequest:
        db_request = PlazaRequestModel(
            request_id=request.request_id,
            room_id=request.room_id,
            room_name=request.room_name,
            user_id=request.user_id,
            user_name=request.user_name,
            status=request.status.value,
            submitted_at=request.submitted_at
        )

        self.session.add(db_request)
        await self.session.commit()
        await self.session.refresh(db_request)
        return self._to_domain(db_request)

    async def get(self, request_id: str) -> Optional[PlazaRequest]:
        result = await self.session.execute(
            select(PlazaRequestModel)
            .where(PlazaRequestModel.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        db_request = result.scalar_one_or_none()
        return self._to_domain(db_request) if db_request else None

    async def list(self, status: Optional[PlazaRequestStatus] = None) -> List[PlazaRequest]:
        """Pending requests oldest first (review queue); any other listing newest first"""
        query = select(PlazaRequestModel)
        if status is not None:
            query = query.where(PlazaRequestModel.status == status.value)

        if status == PlazaRequestStatus.PENDING:
            query = query.order_by(PlazaRequestModel.submitted_at.asc())
        else:
            query = query.order_by(PlazaRequestModel.submitted_at.desc())

        result = await self.session.execute(query)
        return [self._to_domain(db_request) for db_request in result.scalars().all()]

    async def latest_for_room(self, room_id: str) -> Optional[PlazaRequest]:
        result = await self.session.execute(
            select(PlazaRequestModel)
            .where(PlazaRequestModel.room_id == room_id)
            .order_by(PlazaRequestModel.submitted_at.desc())
            .limit(1)
        )
        db_request = result.scalar_one_or_none()
        return self._to_domain(db_request) if db_request else None

    async def review(
        self,
        request_id: str,
        status: PlazaRequestStatus,
        reviewed_at: int,
        reviewed_by: str
    ) -> bool:
        """Close a pending request; False if it was already reviewed"""
        result = await self.session.execute(
            update(PlazaRequestModel)
            .where(
                PlazaRequestModel.request_id == request_id,
                PlazaRequestModel.status == PlazaRequestStatus.PENDING.value
            )
            .values(status=status.value, reviewed_at=reviewed_at, reviewed_by=reviewed_by)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def delete(self, request_id: str) -> bool:
        result = await self.session.execute(
            delete(PlazaRequestModel)
            .where(PlazaRequestModel.request_id == request_id)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount > 0

    def _to_domain(self, db_request: PlazaRequestModel) -> PlazaRequest:
        """Convert the DB model to a domain entity"""
        return PlazaRequest(
            request_id=db_request.request_id,
            room_id=db_request.room_id,
            room_name=db_request.room_name,
            user_id=db_request.user_id,
            user_name=db_request.user_name,
            status=PlazaRequestStatus(db_request.status),
            submitted_at=db_request.submitted_at,
            reviewed_at=db_request.reviewed_at,
            reviewed_by=db_request.reviewed_by
        )
