import pytest
import pytest_asyncio

from roomkeeper.core.auth import Requester
from roomkeeper.core.exceptions import InvalidTransitionError, NotFoundError, UnauthorizedError
from roomkeeper.domains.plaza.entities import NO_REQUEST, PlazaRequestStatus
from roomkeeper.domains.plaza.services import PlazaRequestService
from roomkeeper.domains.rooms.services import RoomLifecycleService

OWNER = Requester(user_id="owner", user_name="Owner")
ADMIN = Requester(user_id="admin", user_name="Admin", is_admin=True)
VISITOR = Requester(user_id="visitor")


@pytest_asyncio.fixture
async def lifecycle(session):
    service = RoomLifecycleService(session)
    await service.create_room("room-1", "Board", OWNER.user_id)
    await service.publish("room-1", OWNER.user_id, "slug-1")
    return service


@pytest.fixture
def plaza(session):
    return PlazaRequestService(session)


@pytest.mark.asyncio
async def test_approval_lists_room(lifecycle, plaza):
    assert await plaza.status("room-1") == NO_REQUEST

    request = await plaza.submit("room-1", OWNER)
    assert request.status == PlazaRequestStatus.PENDING
    assert request.room_name == "Board"
    assert await plaza.status("room-1") == "pending"

    reviewed = await plaza.review(request.request_id, True, ADMIN)
    assert reviewed.status == PlazaRequestStatus.APPROVED
    assert reviewed.reviewed_by == ADMIN.user_id
    assert reviewed.reviewed_at is not None

    room = await lifecycle.get_room("room-1")
    assert room.plaza
    assert room.owner_id == OWNER.user_id


@pytest.mark.asyncio
async def test_rejection_leaves_room_off_plaza(lifecycle, plaza):
    request = await plaza.submit("room-1", OWNER)
    reviewed = await plaza.review(request.request_id, False, ADMIN)

    assert reviewed.status == PlazaRequestStatus.REJECTED
    assert not (await lifecycle.get_room("room-1")).plaza

    with pytest.raises(InvalidTransitionError):
        await plaza.review(request.request_id, True, ADMIN)

    resubmitted = await plaza.submit("room-1", OWNER)
    assert resubmitted.is_pending


@pytest.mark.asyncio
async def test_submit_rules(lifecycle, plaza):
    with pytest.raises(UnauthorizedError):
        await plaza.submit("room-1", VISITOR)
    with pytest.raises(NotFoundError):
        await plaza.submit("missing", OWNER)

    await plaza.submit("room-1", OWNER)
    with pytest.raises(InvalidTransitionError):
        await plaza.submit("room-1", OWNER)

    await lifecycle.create_room("room-2", "Draft", OWNER.user_id)
    with pytest.raises(InvalidTransitionError):
        await plaza.submit("room-2", OWNER)


@pytest.mark.asyncio
async def test_approval_fails_once_room_is_withdrawn(lifecycle, plaza):
    request = await plaza.submit("room-1", OWNER)
    await lifecycle.unpublish("room-1", OWNER.user_id)

    with pytest.raises(InvalidTransitionError):
        await plaza.review(request.request_id, True, ADMIN)

    assert await plaza.status("room-1") == "pending"
    assert not (await lifecycle.get_room("room-1")).plaza


@pytest.mark.asyncio
async def test_review_queue_is_admin_only(lifecycle, plaza):
    await lifecycle.create_room("room-2", "Second", OWNER.user_id)
    await lifecycle.publish("room-2", OWNER.user_id, "slug-2")
    first = await plaza.submit("room-1", OWNER)
    second = await plaza.submit("room-2", OWNER)

    with pytest.raises(UnauthorizedError):
        await plaza.list_requests(OWNER)
    with pytest.raises(UnauthorizedError):
        await plaza.review(first.request_id, True, OWNER)

    pending = await plaza.list_requests(ADMIN, PlazaRequestStatus.PENDING)
    assert {request.request_id for request in pending} == {first.request_id, second.request_id}

    await plaza.review(first.request_id, True, ADMIN)
    pending = await plaza.list_requests(ADMIN, PlazaRequestStatus.PENDING)
    assert [request.request_id for request in pending] == [second.request_id]
    assert len(await plaza.list_requests(ADMIN)) == 2


@pytest.mark.asyncio
async def test_delete_request(lifecycle, plaza):
    request = await plaza.submit("room-1", OWNER)

    with pytest.raises(UnauthorizedError):
        await plaza.delete(request.request_id, OWNER)

    await plaza.delete(request.request_id, ADMIN)
    assert await plaza.status("room-1") == NO_REQUEST
    with pytest.raises(NotFoundError):
        await plaza.delete(request.request_id, ADMIN)
    with pytest.raises(NotFoundError):
        await plaza.review(request.request_id, True, ADMIN)


@pytest.mark.asyncio
async def test_room_deletion_removes_its_requests(lifecycle, plaza):
    request = await plaza.submit("room-1", OWNER)
    await lifecycle.delete_room("room-1", OWNER.user_id)

    assert await plaza.list_requests(ADMIN) == []
    with pytest.raises(NotFoundError):
        await plaza.review(request.request_id, True, ADMIN)
