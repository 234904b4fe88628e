from typing import AsyncIterator, Tuple

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

# Base class for all models
Base = declarative_base()


def create_engine_and_sessionmaker(
    database_url: str, echo: bool = False
) -> Tuple[AsyncEngine, async_sessionmaker]:
    """Build the async engine and its session factory for one application instance"""
    engine_kwargs = {"future": True, "echo": echo}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # Every session must see the same in-memory database
        engine_kwargs["poolclass"] = StaticPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(database_url, **engine_kwargs)
    if database_url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_factory


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests inside the transaction
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


async def create_all(engine: AsyncEngine) -> None:
    """Create missing tables from the model metadata"""
    # Import for side effects: registers every table on Base.metadata
    import roomkeeper.db.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency for FastAPI
async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session
