from roomkeeper.db.repositories.room_repository import RoomDirectory
from roomkeeper.db.repositories.publish_repository import PublishSnapshotRepository
from roomkeeper.db.repositories.share_repository import ShareConfigRepository
from roomkeeper.db.repositories.activity_repository import ActivityRepository
from roomkeeper.db.repositories.plaza_request_repository import PlazaRequestRepository

__all__ = [
    "RoomDirectory",
    "PublishSnapshotRepository",
    "ShareConfigRepository",
    "ActivityRepository",
    "PlazaRequestRepository"
]
