from roomkeeper.db.models.room import Room
from roomkeeper.db.models.publishing import PublishSnapshot
from roomkeeper.db.models.sharing import ShareConfig
from roomkeeper.db.models.activity import UserActivity
from roomkeeper.db.models.plaza import PlazaRequest

__all__ = [
    "Room",
    "PublishSnapshot",
    "ShareConfig",
    "UserActivity",
    "PlazaRequest"
]
