from sqlalchemy import Column, String, BigInteger

from roomkeeper.db.base import BaseModel


class PlazaRequest(BaseModel):
    __tablename__ = "plaza_requests"

    request_id = Column(String(64), primary_key=True)
    room_id = Column(String(255), nullable=False, index=True)
    room_name = Column(String(255), nullable=False)
    user_id = Column(String(255), nullable=False, index=True)
    user_name = Column(String(255))
    status = Column(String(16), nullable=False, default="pending", index=True)
    submitted_at = Column(BigInteger, nullable=False, index=True)
    reviewed_at = Column(BigInteger)
    reviewed_by = Column(String(255))
