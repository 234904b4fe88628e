from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from roomkeeper.core.db import get_db

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)):
    """Liveness plus a database round trip"""
    await db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
