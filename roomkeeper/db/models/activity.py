from sqlalchemy import Column, String, BigInteger, Integer, Index

from roomkeeper.db.base import BaseModel


class UserActivity(BaseModel):
    __tablename__ = "user_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    user_name = Column(String(255))
    activity_type = Column(String(32), nullable=False)
    room_id = Column(String(255), nullable=False, index=True)
    room_name = Column(String(255))
    activity_timestamp = Column(BigInteger, nullable=False)
    last_page_id = Column(String(255))
    last_page_name = Column(String(255))

    __table_args__ = (
        Index("ix_user_activities_user_timestamp", "user_id", "activity_timestamp"),
    )
