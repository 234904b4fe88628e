from sqlalchemy import Column, String, BigInteger, Integer, JSON, UniqueConstraint

from roomkeeper.core.db import Base


class PublishSnapshot(Base):
    __tablename__ = "publish_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(64), nullable=False, index=True)
    room_id = Column(String(255), nullable=False, index=True)
    version = Column(BigInteger, nullable=False)
    content = Column(JSON, nullable=False)
    page_count = Column(Integer, nullable=False, default=0)
    shape_count = Column(Integer, nullable=False, default=0)
    published_by_id = Column(String(255), nullable=False)
    published_by_name = Column(String(255))
    published_at = Column(BigInteger, nullable=False)

    # Publishes racing on one slug cannot both claim a version
    __table_args__ = (
        UniqueConstraint("slug", "version", name="uq_publish_snapshots_slug_version"),
    )
