from sqlalchemy import Column, String, Text, Boolean, BigInteger, Integer

from roomkeeper.db.base import BaseModel
from roomkeeper.db.models.room import permission_type


class ShareConfig(BaseModel):
    __tablename__ = "share_configs"

    share_id = Column(String(64), primary_key=True)
    room_id = Column(String(255), nullable=False, index=True)
    page_id = Column(String(255))
    permission = Column(permission_type(), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(255), nullable=False)
    last_accessed = Column(BigInteger)
    access_count = Column(Integer, nullable=False, default=0)
    max_access = Column(Integer)
    description = Column(Text)
