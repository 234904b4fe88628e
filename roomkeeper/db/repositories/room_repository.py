import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import select, update, delete, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.clock import next_millis, now_millis
from roomkeeper.core.exceptions import NotFoundError, RoomAlreadyExistsError
from roomkeeper.db.models.activity import UserActivity as UserActivityModel
from roomkeeper.db.models.plaza import PlazaRequest as PlazaRequestModel
from roomkeeper.db.models.publishing import PublishSnapshot as PublishSnapshotModel
from roomkeeper.db.models.room import Room as RoomModel
from roomkeeper.db.models.sharing import ShareConfig as ShareConfigModel
from roomkeeper.domains.rooms.entities import Room, GOVERNANCE_FIELDS, DESCRIPTIVE_FIELDS

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = GOVERNANCE_FIELDS | DESCRIPTIVE_FIELDS | {"owner_id", "owner_name"}

# Rows owned by a room, removed before the room itself
CASCADE_MODELS = (
    ("publish_snapshots", PublishSnapshotModel),
    ("share_configs", ShareConfigModel),
    ("user_activities", UserActivityModel),
    ("plaza_requests", PlazaRequestModel),
)

_UNCONDITIONAL_UPDATE_ATTEMPTS = 5


class RoomDirectory:
    """Repository for room records"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, room_id: str) -> Optional[Room]:
        """Get a room by id"""
        result = await self.session.execute(
            select(RoomModel)
            .where(RoomModel.id == room_id)
            .execution_options(populate_existing=True)
        )
        db_room = result.scalar_one_or_none()
        return self._to_domain(db_room) if db_room else None

    async def get_by_slug(self, slug: str) -> Optional[Room]:
        """Get the room a publish slug belongs to"""
        result = await self.session.execute(
            select(RoomModel)
            .where(RoomModel.publish_slug == slug)
            .execution_options(populate_existing=True)
        )
        db_room = result.scalar_one_or_none()
        return self._to_domain(db_room) if db_room else None

    async def create(self, room: Room) -> Room:
        """Insert a new room"""
        db_room = RoomModel(
            id=room.id,
            name=room.name,
            owner_id=room.owner_id,
            owner_name=room.owner_name,
            permission=room.permission,
            max_permission=room.max_permission,
            shared=room.shared,
            publish=room.publish,
            plaza=room.plaza,
            history_locked=room.history_locked,
            history_lock_timestamp=room.history_lock_timestamp,
            history_locked_by=room.history_locked_by,
            history_locked_by_name=room.history_locked_by_name,
            publish_slug=room.publish_slug,
            description=room.description,
            tags=list(room.tags),
            thumbnail=room.thumbnail,
            cover_page_id=room.cover_page_id,
            created_at=room.created_at,
            last_modified=room.last_modified
        )

        self.session.add(db_room)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise RoomAlreadyExistsError(f"Room {room.id} already exists")

        await self.session.refresh(db_room)
        return self._to_domain(db_room)

    async def update(
        self,
        room_id: str,
        changes: Dict[str, Any],
        expected_last_modified: Optional[int] = None
    ) -> Optional[Room]:
        """Apply field changes and bump last_modified.

        With ``expected_last_modified`` the write only happens if the stored
        row still carries that value; a lost race returns None.
        """
        unknown = set(changes) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        if expected_last_modified is not None:
            return await self._compare_and_swap(room_id, changes, expected_last_modified)

        for _ in range(_UNCONDITIONAL_UPDATE_ATTEMPTS):
            current = await self.get(room_id)
            if current is None:
                raise NotFoundError(f"Room {room_id} not found")
            updated = await self._compare_and_swap(room_id, changes, current.last_modified)
            if updated is not None:
                return updated

        # Still contended; fall through to a plain write with a monotonic timestamp
        return await self._write(room_id, changes)

    async def _compare_and_swap(self, room_id: str, changes: Dict[str, Any], expected: int) -> Optional[Room]:
        values = dict(changes)
        values["last_modified"] = next_millis(expected)

        stmt = (
            update(RoomModel)
            .where(RoomModel.id == room_id, RoomModel.last_modified == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            await self.session.rollback()
            if await self.get(room_id) is None:
                raise NotFoundError(f"Room {room_id} not found")
            return None

        await self.session.commit()
        return await self.get(room_id)

    async def _write(self, room_id: str, changes: Dict[str, Any]) -> Room:
        values = dict(changes)
        values["last_modified"] = self._bumped_last_modified()

        result = await self.session.execute(
            update(RoomModel)
            .where(RoomModel.id == room_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError(f"Room {room_id} not found")

        await self.session.commit()
        return await self.get(room_id)

    async def assign_slug(self, room_id: str, slug: str) -> Optional[str]:
        """Set the publish slug unless one is already assigned; returns the room's slug.

        Returns None when ``slug`` is already taken by another room.
        """
        stmt = (
            update(RoomModel)
            .where(RoomModel.id == room_id, RoomModel.publish_slug.is_(None))
            .values(publish_slug=slug, last_modified=self._bumped_last_modified())
            .execution_options(synchronize_session=False)
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return None

        room = await self.get(room_id)
        if room is None:
            raise NotFoundError(f"Room {room_id} not found")
        return room.publish_slug

    async def delete(self, room_id: str) -> bool:
        """Delete a room and the records that belong to it"""
        if await self.get(room_id) is None:
            raise NotFoundError(f"Room {room_id} not found")

        for table_name, model in CASCADE_MODELS:
            try:
                async with self.session.begin_nested():
                    await self.session.execute(delete(model).where(model.room_id == room_id))
            except SQLAlchemyError as e:
                logger.warning("Cascade delete of %s for room %s failed: %s", table_name, room_id, e)

        result = await self.session.execute(
            delete(RoomModel)
            .where(RoomModel.id == room_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError(f"Room {room_id} not found")

        await self.session.commit()
        return True

    async def list(
        self,
        shared: Optional[bool] = None,
        publish: Optional[bool] = None,
        plaza: Optional[bool] = None,
        owner_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Room]:
        """List rooms matching every given filter, most recently modified first"""
        query = select(RoomModel)

        if shared is not None:
            query = query.where(RoomModel.shared == shared)
        if publish is not None:
            query = query.where(RoomModel.publish == publish)
        if plaza is not None:
            query = query.where(RoomModel.plaza == plaza)
        if owner_id is not None:
            query = query.where(RoomModel.owner_id == owner_id)

        query = query.order_by(RoomModel.last_modified.desc()).offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return [self._to_domain(db_room) for db_room in result.scalars().all()]

    @staticmethod
    def _bumped_last_modified():
        now = now_millis()
        return case(
            (RoomModel.last_modified >= now, RoomModel.last_modified + 1),
            else_=now
        )

    def _to_domain(self, db_room: RoomModel) -> Room:
        """Convert the DB model to a domain entity"""
        return Room(
            id=db_room.id,
            name=db_room.name,
            owner_id=db_room.owner_id,
            owner_name=db_room.owner_name,
            permission=db_room.permission,
            max_permission=db_room.max_permission,
            shared=db_room.shared,
            publish=db_room.publish,
            plaza=db_room.plaza,
            history_locked=db_room.history_locked,
            history_lock_timestamp=db_room.history_lock_timestamp,
            history_locked_by=db_room.history_locked_by,
            history_locked_by_name=db_room.history_locked_by_name,
            publish_slug=db_room.publish_slug,
            description=db_room.description,
            tags=db_room.tags or [],
            thumbnail=db_room.thumbnail,
            cover_page_id=db_room.cover_page_id,
            created_at=db_room.created_at,
            last_modified=db_room.last_modified
        )
