from sqlalchemy import Column, String, Text, Boolean, BigInteger, JSON, Enum, Index

from roomkeeper.db.base import BaseModel
from roomkeeper.domains.permissions.entities import PermissionLevel


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def permission_type() -> Enum:
    """Permission levels stored by value ('viewer', 'assist', 'editor')"""
    return Enum(
        PermissionLevel,
        values_callable=_enum_values,
        native_enum=False,
        length=16,
    )


class Room(BaseModel):
    __tablename__ = "rooms"

    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    owner_id = Column(String(255), nullable=False, index=True)
    owner_name = Column(String(255))

    permission = Column(permission_type(), nullable=False, default=PermissionLevel.EDITOR)
    max_permission = Column(permission_type(), nullable=False, default=PermissionLevel.EDITOR)

    shared = Column(Boolean, nullable=False, default=False)
    publish = Column(Boolean, nullable=False, default=False)
    plaza = Column(Boolean, nullable=False, default=False)

    history_locked = Column(Boolean, nullable=False, default=False)
    history_lock_timestamp = Column(BigInteger)
    history_locked_by = Column(String(255))
    history_locked_by_name = Column(String(255))

    publish_slug = Column(String(64), unique=True)

    description = Column(Text)
    tags = Column(JSON, default=list)
    thumbnail = Column(Text)
    cover_page_id = Column(String(255))

    last_modified = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_rooms_last_modified", "last_modified"),
    )
