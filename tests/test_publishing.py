import pytest
from sqlalchemy import text

from roomkeeper.core.exceptions import (
    ConcurrentModificationError, InvalidTransitionError, NotFoundError, RemoteSyncFailure, UnauthorizedError
)
from roomkeeper.domains.publishing.cache import SnapshotCache
from roomkeeper.domains.publishing.entities import PublishSnapshot, count_pages_and_shapes
from roomkeeper.domains.publishing.services import SLUG_ALPHABET, SLUG_LENGTH, PublishSnapshotService, generate_slug
from roomkeeper.domains.rooms.services import RoomLifecycleService

from tests.conftest import whiteboard_content


@pytest.fixture
def publisher(session, snapshot_cache):
    return PublishSnapshotService(session, snapshot_cache)


async def _create(session, room_id="room-1", owner_id="owner"):
    return await RoomLifecycleService(session).create_room(room_id, "Board", owner_id)


def test_generate_slug():
    slug = generate_slug()
    assert len(slug) == SLUG_LENGTH
    assert set(slug) <= set(SLUG_ALPHABET)
    assert generate_slug() != slug


def test_count_pages_and_shapes():
    assert count_pages_and_shapes(whiteboard_content(pages=2, shapes=3)) == (2, 3)
    assert count_pages_and_shapes({"records": [{"typeName": "page"}, {"typeName": "shape"}]}) == (1, 1)
    assert count_pages_and_shapes({}) == (0, 0)
    assert count_pages_and_shapes("not a document") == (0, 0)


@pytest.mark.asyncio
async def test_publish_keeps_slug_and_bumps_version(session, publisher):
    await _create(session)

    slug, first = await publisher.publish("room-1", whiteboard_content(), "owner", now=5000)
    again, second = await publisher.publish("room-1", whiteboard_content(shapes=4), "owner", now=5000)

    assert again == slug
    assert second > first

    room = await RoomLifecycleService(session).get_room("room-1")
    assert room.publish
    assert room.publish_slug == slug

    current = await publisher.resolve(slug)
    assert current.version == second
    assert current.shape_count == 4
    assert current.page_count == 1


@pytest.mark.asyncio
async def test_publish_requires_owner(session, publisher):
    await _create(session)

    with pytest.raises(UnauthorizedError):
        await publisher.publish("room-1", whiteboard_content(), "visitor")


@pytest.mark.asyncio
async def test_history_newest_first(session, publisher):
    await _create(session)
    slug, _ = await publisher.publish("room-1", whiteboard_content(), "owner")
    await publisher.publish("room-1", whiteboard_content(), "owner")
    await publisher.publish("room-1", whiteboard_content(), "owner")

    versions = [snapshot.version for snapshot in await publisher.history(slug, limit=2)]
    assert len(versions) == 2
    assert versions == sorted(versions, reverse=True)

    with pytest.raises(NotFoundError):
        await publisher.history("unknown-slug")


@pytest.mark.asyncio
async def test_write_snapshot_requires_owner_of_slug(session, publisher):
    await _create(session)
    slug, version = await publisher.publish("room-1", whiteboard_content(), "owner")

    snapshot = await publisher.write_snapshot(slug, whiteboard_content(pages=3), "owner")
    assert snapshot.version > version
    assert snapshot.page_count == 3

    with pytest.raises(UnauthorizedError):
        await publisher.write_snapshot(slug, whiteboard_content(), "visitor")
    with pytest.raises(NotFoundError):
        await publisher.write_snapshot("unknown-slug", whiteboard_content(), "owner")


@pytest.mark.asyncio
async def test_invalidate_keeps_slug_assigned(session, publisher, snapshot_cache):
    await _create(session)
    slug, _ = await publisher.publish("room-1", whiteboard_content(), "owner")
    await publisher.publish("room-1", whiteboard_content(), "owner")

    assert await publisher.invalidate(slug, "owner") == 2
    assert slug not in snapshot_cache
    with pytest.raises(NotFoundError):
        await publisher.resolve(slug)

    republished, _ = await publisher.publish("room-1", whiteboard_content(), "owner")
    assert republished == slug


@pytest.mark.asyncio
async def test_invalidate_unassigned_slug(session, publisher):
    await _create(session)
    slug, _ = await publisher.publish("room-1", whiteboard_content(), "owner")

    with pytest.raises(NotFoundError):
        await publisher.invalidate("unknown-slug", "owner")
    with pytest.raises(NotFoundError):
        await publisher.invalidate("unknown-slug", None)
    with pytest.raises(UnauthorizedError):
        await publisher.invalidate(slug, "visitor")

    assert (await publisher.resolve(slug)).room_id == "room-1"


@pytest.mark.asyncio
async def test_unpublished_snapshot_still_resolves(session, publisher):
    await _create(session)
    slug, version = await publisher.publish("room-1", whiteboard_content(), "owner")
    await RoomLifecycleService(session).unpublish("room-1", "owner")

    snapshot = await publisher.resolve(slug)
    assert snapshot.version == version


@pytest.mark.asyncio
async def test_resolve_falls_back_to_cache(session, publisher):
    await _create(session)
    slug, version = await publisher.publish("room-1", whiteboard_content(), "owner")

    await session.execute(text("DROP TABLE publish_snapshots"))
    await session.commit()

    snapshot = await publisher.resolve(slug)
    assert snapshot.version == version

    with pytest.raises(NotFoundError):
        await publisher.resolve("never-cached")


@pytest.mark.asyncio
async def test_failed_store_write_does_not_publish(session, publisher, snapshot_cache):
    await _create(session)
    await session.execute(text("DROP TABLE publish_snapshots"))
    await session.commit()

    with pytest.raises(RemoteSyncFailure):
        await publisher.publish("room-1", whiteboard_content(), "owner")

    room = await RoomLifecycleService(session).get_room("room-1")
    assert not room.publish
    assert len(snapshot_cache) == 0


@pytest.mark.asyncio
async def test_lost_flag_flip_is_retried_without_new_version(session, publisher, monkeypatch):
    await _create(session)
    real_publish = publisher.lifecycle.publish
    calls = []

    async def losing_publish(room_id, requester_id, slug=None):
        calls.append(slug)
        if len(calls) == 1:
            raise ConcurrentModificationError(f"Room {room_id} was modified concurrently; publish not applied")
        return await real_publish(room_id, requester_id, slug)

    monkeypatch.setattr(publisher.lifecycle, "publish", losing_publish)

    with pytest.raises(ConcurrentModificationError):
        await publisher.publish("room-1", whiteboard_content(), "owner")

    room = await RoomLifecycleService(session).get_room("room-1")
    assert not room.publish
    stored = await publisher.resolve(room.publish_slug)

    slug, version = await publisher.publish("room-1", None, "owner")

    assert slug == stored.slug
    assert version == stored.version
    assert (await RoomLifecycleService(session).get_room("room-1")).publish
    assert len(await publisher.history(slug)) == 1


@pytest.mark.asyncio
async def test_publish_without_content_needs_a_stored_version(session, publisher):
    await _create(session)

    with pytest.raises(InvalidTransitionError):
        await publisher.publish("room-1", None, "owner")
    with pytest.raises(UnauthorizedError):
        await publisher.publish("room-1", None, "visitor")

    assert not (await RoomLifecycleService(session).get_room("room-1")).publish


def _snapshot(slug, version):
    return PublishSnapshot(slug=slug, room_id="room", version=version, content={}, published_by_id="owner")


def test_cache_evicts_least_recently_used():
    cache = SnapshotCache(max_size=2)
    cache.put(_snapshot("a", 1))
    cache.put(_snapshot("b", 1))
    cache.get("a")
    cache.put(_snapshot("c", 1))

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache
    assert len(cache) == 2


def test_cache_keeps_newer_version():
    cache = SnapshotCache(max_size=4)
    cache.put(_snapshot("a", 5))
    cache.put(_snapshot("a", 3))
    assert cache.get("a").version == 5

    cache.put(_snapshot("a", 7))
    assert cache.get("a").version == 7

    cache.invalidate("a")
    assert cache.get("a") is None


def test_cache_rejects_empty_size():
    with pytest.raises(ValueError):
        SnapshotCache(max_size=0)
