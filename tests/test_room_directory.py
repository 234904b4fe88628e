import logging

import pytest
from sqlalchemy import text

from roomkeeper.core.exceptions import NotFoundError, RoomAlreadyExistsError
from roomkeeper.db.repositories.activity_repository import ActivityRepository
from roomkeeper.db.repositories.publish_repository import PublishSnapshotRepository
from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.db.repositories.share_repository import ShareConfigRepository
from roomkeeper.domains.activity.entities import ActivityType, UserActivity
from roomkeeper.domains.permissions import PermissionLevel
from roomkeeper.domains.publishing.entities import PublishSnapshot
from roomkeeper.domains.rooms.entities import Room
from roomkeeper.domains.sharing.entities import ShareConfig

from tests.conftest import whiteboard_content


async def seed_room(directory: RoomDirectory, room_id: str = "room-1", owner_id: str = "owner", **fields) -> Room:
    room = Room.create_room(room_id=room_id, name=f"Room {room_id}", owner_id=owner_id)
    return await directory.create(room.with_changes(fields))


@pytest.mark.asyncio
async def test_create_and_get(session):
    directory = RoomDirectory(session)
    created = await seed_room(directory, tags=["art", "draft"])

    loaded = await directory.get("room-1")
    assert loaded.name == "Room room-1"
    assert loaded.tags == ["art", "draft"]
    assert loaded.permission == PermissionLevel.EDITOR
    assert loaded.last_modified == created.last_modified
    assert await directory.get("missing") is None


@pytest.mark.asyncio
async def test_create_duplicate_id_conflicts(session):
    directory = RoomDirectory(session)
    await seed_room(directory)

    with pytest.raises(RoomAlreadyExistsError):
        await seed_room(directory)


@pytest.mark.asyncio
async def test_update_bumps_last_modified(session):
    directory = RoomDirectory(session)
    room = await seed_room(directory)

    first = await directory.update(room.id, {"name": "Renamed"})
    second = await directory.update(room.id, {"description": "Notes"})

    assert first.name == "Renamed"
    assert first.last_modified > room.last_modified
    assert second.last_modified > first.last_modified


@pytest.mark.asyncio
async def test_update_missing_room_raises(session):
    with pytest.raises(NotFoundError):
        await RoomDirectory(session).update("missing", {"name": "x"})


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(session):
    directory = RoomDirectory(session)
    await seed_room(directory)

    with pytest.raises(ValueError):
        await directory.update("room-1", {"created_at": 0})


@pytest.mark.asyncio
async def test_compare_and_swap_loses_on_stale_timestamp(session):
    directory = RoomDirectory(session)
    room = await seed_room(directory)

    winner = await directory.update(room.id, {"shared": True}, expected_last_modified=room.last_modified)
    loser = await directory.update(room.id, {"name": "Late"}, expected_last_modified=room.last_modified)

    assert winner.shared
    assert loser is None
    assert (await directory.get(room.id)).name == "Room room-1"


@pytest.mark.asyncio
async def test_list_filters_and_orders_by_last_modified(session):
    directory = RoomDirectory(session)
    await seed_room(directory, "a", shared=True, last_modified=1000)
    await seed_room(directory, "b", publish=True, plaza=True, last_modified=2000)
    await seed_room(directory, "c", owner_id="someone-else", publish=True, last_modified=3000)

    assert [room.id for room in await directory.list()] == ["c", "b", "a"]
    assert [room.id for room in await directory.list(shared=True)] == ["a"]
    assert [room.id for room in await directory.list(publish=True)] == ["c", "b"]
    assert [room.id for room in await directory.list(plaza=True)] == ["b"]
    assert [room.id for room in await directory.list(owner_id="someone-else")] == ["c"]
    assert [room.id for room in await directory.list(publish=True, owner_id="owner")] == ["b"]


@pytest.mark.asyncio
async def test_assign_slug_first_writer_wins(session):
    directory = RoomDirectory(session)
    await seed_room(directory)

    assert await directory.assign_slug("room-1", "first") == "first"
    assert await directory.assign_slug("room-1", "second") == "first"


@pytest.mark.asyncio
async def test_assign_slug_taken_by_other_room(session):
    directory = RoomDirectory(session)
    await seed_room(directory, "a")
    await seed_room(directory, "b")
    await directory.assign_slug("a", "shared-slug")

    assert await directory.assign_slug("b", "shared-slug") is None
    assert (await directory.get("b")).publish_slug is None


async def seed_dependents(session, room_id: str) -> None:
    await PublishSnapshotRepository(session).add(PublishSnapshot.create_snapshot(
        slug=f"slug-{room_id}", room_id=room_id, version=1, content=whiteboard_content(), published_by_id="owner"
    ))
    await ShareConfigRepository(session).create(ShareConfig.create_share(
        room_id=room_id, permission=PermissionLevel.VIEWER, created_by="owner", created_at=1
    ))
    await ActivityRepository(session).add(UserActivity(
        user_id="visitor", activity_type=ActivityType.ROOM_VISIT, room_id=room_id
    ))


async def count_rows(session, table: str, room_id: str) -> int:
    result = await session.execute(text(f"SELECT COUNT(*) FROM {table} WHERE room_id = :room_id"), {"room_id": room_id})
    return result.scalar()


@pytest.mark.asyncio
async def test_delete_cascades(session):
    directory = RoomDirectory(session)
    await seed_room(directory, "doomed")
    await seed_room(directory, "kept")
    await seed_dependents(session, "doomed")
    await seed_dependents(session, "kept")

    assert await directory.delete("doomed") is True

    assert await directory.get("doomed") is None
    for table in ("publish_snapshots", "share_configs", "user_activities"):
        assert await count_rows(session, table, "doomed") == 0
        assert await count_rows(session, table, "kept") == 1


@pytest.mark.asyncio
async def test_delete_continues_past_failed_cascade(session, caplog):
    directory = RoomDirectory(session)
    await seed_room(directory, "doomed")
    await seed_dependents(session, "doomed")
    await session.execute(text("DROP TABLE user_activities"))
    await session.commit()

    with caplog.at_level(logging.WARNING, logger="roomkeeper"):
        assert await directory.delete("doomed") is True

    assert await directory.get("doomed") is None
    assert await count_rows(session, "publish_snapshots", "doomed") == 0
    assert await count_rows(session, "share_configs", "doomed") == 0
    assert "user_activities" in caplog.text


@pytest.mark.asyncio
async def test_delete_missing_room_raises(session):
    with pytest.raises(NotFoundError):
        await RoomDirectory(session).delete("missing")
