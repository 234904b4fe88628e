import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from roomkeeper.api.router import api_router
from roomkeeper.core.config import Settings, settings as default_settings
from roomkeeper.core.db import create_all, create_engine_and_sessionmaker
from roomkeeper.core.logging import configure_logging
from roomkeeper.domains.publishing.cache import SnapshotCache

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build an application with its own engine, session factory and snapshot cache"""
    app_settings = app_settings or default_settings
    configure_logging(app_settings.log_level)

    engine, session_factory = create_engine_and_sessionmaker(
        app_settings.database_url, echo=app_settings.database_echo
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await create_all(engine)
        logger.info("roomkeeper started")
        yield
        await engine.dispose()

    app = FastAPI(
        title="roomkeeper",
        description="Room governance for a collaborative whiteboard: permissions, lifecycle, share links and publishing",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.snapshot_cache = SnapshotCache(app_settings.snapshot_cache_size)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "message": "roomkeeper API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()
