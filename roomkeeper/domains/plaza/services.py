import logging
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.auth import Requester
from roomkeeper.core.clock import now_millis
from roomkeeper.core.exceptions import InvalidTransitionError, NotFoundError, UnauthorizedError
from roomkeeper.db.repositories.plaza_request_repository import PlazaRequestRepository
from roomkeeper.domains.plaza.entities import NO_REQUEST, PlazaRequest, PlazaRequestStatus
from roomkeeper.domains.rooms.services import AccessEvaluator, RoomLifecycleService

logger = logging.getLogger(__name__)


class PlazaRequestService:
    """Owner-submitted plaza listing requests and their administrator review.

    Approving a request lists the room through the lifecycle service, so the
    plaza invariants are checked exactly as for an owner listing it directly.
    """

    def __init__(self, session: AsyncSession, max_attempts: Optional[int] = None):
        self.repository = PlazaRequestRepository(session)
        self.lifecycle = RoomLifecycleService(session, max_attempts)

    async def submit(self, room_id: str, requester: Requester) -> PlazaRequest:
        """Queue the room for plaza review; one pending request per room"""
        room = await self.lifecycle.get_room(room_id)
        AccessEvaluator.require_owner(room, requester.user_id)

        if room.plaza:
            raise InvalidTransitionError(f"Room {room_id} is already on the plaza")
        if not room.publish:
            raise InvalidTransitionError("Only a published room can be listed on the plaza")

        latest = await self.repository.latest_for_room(room_id)
        if latest is not None and latest.is_pending:
            raise InvalidTransitionError(f"Room {room_id} already has a pending plaza request")

        request = PlazaRequest.create_request(
            room_id=room.id,
            room_name=room.name,
            user_id=requester.user_id,
            user_name=requester.user_name,
            submitted_at=now_millis()
        )
        request = await self.repository.create(request)
        logger.info("Plaza request %s submitted for room %s", request.request_id, room_id)
        return request

    async def status(self, room_id: str) -> str:
        """Status of the room's most recent request, or "none" """
        await self.lifecycle.get_room(room_id)
        latest = await self.repository.latest_for_room(room_id)
        return latest.status.value if latest is not None else NO_REQUEST

    async def list_requests(
        self,
        requester: Requester,
        status: Optional[PlazaRequestStatus] = None
    ) -> List[PlazaRequest]:
        self._require_admin(requester)
        return await self.repository.list(status)

    async def review(self, request_id: str, approve: bool, requester: Requester) -> PlazaRequest:
        """Approve (listing the room on the plaza) or reject a pending request"""
        self._require_admin(requester)

        request = await self.repository.get(request_id)
        if not request:
            raise NotFoundError(f"Plaza request {request_id} not found")
        if not request.is_pending:
            raise InvalidTransitionError(f"Plaza request {request_id} was already {request.status.value}")

        if approve:
            # The request stays pending if the room can no longer be listed
            await self.lifecycle.set_plaza(request.room_id, requester.user_id, True, is_admin=True)

        status = PlazaRequestStatus.APPROVED if approve else PlazaRequestStatus.REJECTED
        if not await self.repository.review(request_id, status, now_millis(), requester.user_id):
            raise InvalidTransitionError(f"Plaza request {request_id} was reviewed concurrently")

        logger.info("Plaza request %s %s by %s", request_id, status.value, requester.user_id)
        return await self.repository.get(request_id)

    async def delete(self, request_id: str, requester: Requester) -> None:
        self._require_admin(requester)
        if not await self.repository.delete(request_id):
            raise NotFoundError(f"Plaza request {request_id} not found")

    @staticmethod
    def _require_admin(requester: Requester) -> None:
        if not requester.is_admin:
            raise UnauthorizedError("Administrator access required")
