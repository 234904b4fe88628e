import logging
import secrets
import string
from typing import Optional, List, Dict, Any, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.clock import next_millis
from roomkeeper.core.exceptions import InvalidTransitionError, NotFoundError, RemoteSyncFailure, UnauthorizedError
from roomkeeper.db.repositories.publish_repository import PublishSnapshotRepository
from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.domains.publishing.cache import SnapshotCache
from roomkeeper.domains.publishing.entities import PublishSnapshot
from roomkeeper.domains.rooms.entities import Room
from roomkeeper.domains.rooms.services import AccessEvaluator, RoomLifecycleService

logger = logging.getLogger(__name__)

SLUG_LENGTH = 21
SLUG_ALPHABET = string.ascii_letters + string.digits + "_-"
_SLUG_ATTEMPTS = 5
_VERSION_ATTEMPTS = 5


def generate_slug() -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH))


class PublishSnapshotService:
    """Versioned, slug-addressed snapshots of room content.

    The durable store is authoritative. The injected ``SnapshotCache`` is only
    written after a durable write commits and is only read when the store
    itself fails.
    """

    def __init__(self, session: AsyncSession, cache: SnapshotCache, max_attempts: Optional[int] = None):
        self.session = session
        self.cache = cache
        self.directory = RoomDirectory(session)
        self.snapshot_repository = PublishSnapshotRepository(session)
        self.lifecycle = RoomLifecycleService(session, max_attempts)

    async def ensure_slug(self, room_id: str) -> str:
        """Return the room's publish slug, assigning one on first use"""
        room = await self.directory.get(room_id)
        if not room:
            raise NotFoundError(f"Room {room_id} not found")
        if room.publish_slug:
            return room.publish_slug

        for _ in range(_SLUG_ATTEMPTS):
            # First writer wins; a concurrent caller reads back the winner's slug
            slug = await self.directory.assign_slug(room_id, generate_slug())
            if slug:
                return slug

        raise RemoteSyncFailure(f"Could not assign a publish slug to room {room_id}")

    async def publish(
        self,
        room_id: str,
        content: Optional[Dict[str, Any]],
        publisher_id: str,
        publisher_name: Optional[str] = None,
        now: Optional[int] = None
    ) -> Tuple[str, int]:
        """Snapshot the room content under its slug and mark the room published.

        The snapshot is durable before the room is flagged. If flagging loses
        to concurrent updates the stored version stays current; publishing
        again with ``content=None`` flags the room without a new version.
        """
        room = await self.lifecycle.get_room(room_id)
        AccessEvaluator.require_owner(room, publisher_id)

        if content is None:
            snapshot = await self._current_snapshot(room)
            slug = snapshot.slug
        else:
            try:
                slug = await self.ensure_slug(room_id)
                snapshot = await self._insert_next_version(
                    slug, room_id, content, publisher_id, publisher_name, now
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("Publishing room %s failed: %s", room_id, e)
                raise RemoteSyncFailure(f"Snapshot for room {room_id} could not be stored")
            self.cache.put(snapshot)

        await self.lifecycle.publish(room_id, publisher_id, slug)

        logger.info(
            "Room %s published as %s version %d (%d pages, %d shapes)",
            room_id, slug, snapshot.version, snapshot.page_count, snapshot.shape_count
        )
        return slug, snapshot.version

    async def write_snapshot(
        self,
        slug: str,
        content: Dict[str, Any],
        publisher_id: str,
        publisher_name: Optional[str] = None
    ) -> PublishSnapshot:
        """Store a new version under an existing slug owned by the publisher"""
        room = await self.directory.get_by_slug(slug)
        if not room:
            raise NotFoundError(f"Slug {slug} is not assigned to any room")
        if not room.is_owner(publisher_id):
            raise UnauthorizedError("Only the room owner can publish snapshots")

        try:
            snapshot = await self._insert_next_version(
                slug, room.id, content, publisher_id, publisher_name, None
            )
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Writing snapshot %s failed: %s", slug, e)
            raise RemoteSyncFailure(f"Snapshot {slug} could not be stored")

        self.cache.put(snapshot)
        return snapshot

    async def resolve(self, slug: str) -> PublishSnapshot:
        """Current snapshot for a slug, from the store or, if the store fails, the cache"""
        try:
            snapshot = await self.snapshot_repository.latest(slug)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning("Snapshot store unavailable for %s, using local cache: %s", slug, e)
            snapshot = self.cache.get(slug)
        else:
            if snapshot is not None:
                self.cache.put(snapshot)

        if snapshot is None:
            raise NotFoundError(f"Published snapshot {slug} not found")
        return snapshot

    async def history(self, slug: str, limit: int = 10) -> List[PublishSnapshot]:
        snapshots = await self.snapshot_repository.history(slug, limit)
        if not snapshots:
            raise NotFoundError(f"Published snapshot {slug} not found")
        return snapshots

    async def invalidate(self, slug: str, requester_id: Optional[str]) -> int:
        """Remove every version of a slug; the slug stays assigned to its room"""
        room = await self.directory.get_by_slug(slug)
        if room is None:
            raise NotFoundError(f"Slug {slug} is not assigned to any room")
        AccessEvaluator.require_owner(room, requester_id)

        removed = await self.snapshot_repository.delete_by_slug(slug)
        self.cache.invalidate(slug)
        logger.info("Snapshot %s invalidated (%d versions removed)", slug, removed)
        return removed

    async def _current_snapshot(self, room: Room) -> PublishSnapshot:
        if not room.publish_slug:
            raise InvalidTransitionError(f"Room {room.id} has nothing published yet")
        try:
            return await self.resolve(room.publish_slug)
        except NotFoundError:
            raise InvalidTransitionError(f"Room {room.id} has nothing published yet")

    def forget_room(self, room: Room) -> None:
        """Drop cached snapshots of a deleted room"""
        if room.publish_slug:
            self.cache.invalidate(room.publish_slug)

    async def _insert_next_version(
        self,
        slug: str,
        room_id: str,
        content: Dict[str, Any],
        publisher_id: str,
        publisher_name: Optional[str],
        now: Optional[int]
    ) -> PublishSnapshot:
        for _ in range(_VERSION_ATTEMPTS):
            latest = await self.snapshot_repository.latest_version(slug)
            version = next_millis(latest, now)
            snapshot = PublishSnapshot.create_snapshot(
                slug=slug,
                room_id=room_id,
                version=version,
                content=content,
                published_by_id=publisher_id,
                published_by_name=publisher_name,
                published_at=now
            )
            stored = await self.snapshot_repository.add(snapshot)
            if stored is not None:
                return stored
            logger.debug("Version %d of %s already taken, retrying", version, slug)

        raise RemoteSyncFailure(f"Could not allocate a version for snapshot {slug}")
