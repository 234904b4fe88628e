from fastapi import APIRouter

from roomkeeper.api.http import (
    health_router, rooms_router, publish_snapshots_router, shares_router, activities_router,
    plaza_requests_router
)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(rooms_router)
api_router.include_router(publish_snapshots_router)
api_router.include_router(shares_router)
api_router.include_router(activities_router)
api_router.include_router(plaza_requests_router)
