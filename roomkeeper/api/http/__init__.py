from roomkeeper.api.http.health import router as health_router
from roomkeeper.api.http.rooms import router as rooms_router
from roomkeeper.api.http.publish_snapshots import router as publish_snapshots_router
from roomkeeper.api.http.shares import router as shares_router
from roomkeeper.api.http.activities import router as activities_router
from roomkeeper.api.http.plaza_requests import router as plaza_requests_router

__all__ = [
    "health_router",
    "rooms_router",
    "publish_snapshots_router",
    "shares_router",
    "activities_router",
    "plaza_requests_router"
]
