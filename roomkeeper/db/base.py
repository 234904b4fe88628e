from sqlalchemy import BigInteger, Column

from roomkeeper.core.clock import now_millis
from roomkeeper.core.db import Base


class BaseModel(Base):
    """Common columns for tables that record when a row was created"""

    __abstract__ = True

    created_at = Column(BigInteger, nullable=False, default=now_millis)
