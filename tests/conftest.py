from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from roomkeeper.core.config import Settings
from roomkeeper.core.db import create_all
from roomkeeper.core.security import create_access_token
from roomkeeper.main import create_app

OWNER_ID = "user-owner"
OWNER_NAME = "Owner"
VISITOR_ID = "user-visitor"
VISITOR_NAME = "Visitor"
ADMIN_ID = "user-admin"


def bearer(user_id: str, name: Optional[str] = None, app_settings: Optional[Settings] = None) -> Dict[str, str]:
    claims = {"sub": user_id}
    if name:
        claims["name"] = name
    return {"Authorization": f"Bearer {create_access_token(claims, app_settings=app_settings)}"}


@pytest_asyncio.fixture
async def app():
    application = create_app(Settings(
        database_url="sqlite+aiosqlite:///:memory:", snapshot_cache_size=8, admin_user_ids=[ADMIN_ID]
    ))
    await create_all(application.state.engine)
    try:
        yield application
    finally:
        await application.state.engine.dispose()


@pytest_asyncio.fixture
async def session(app):
    async with app.state.session_factory() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def api_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def owner_headers():
    return bearer(OWNER_ID, OWNER_NAME)


@pytest.fixture
def visitor_headers():
    return bearer(VISITOR_ID, VISITOR_NAME)


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_ID, "Admin")


@pytest.fixture
def snapshot_cache(app):
    return app.state.snapshot_cache


def whiteboard_content(pages: int = 1, shapes: int = 2) -> Dict[str, Dict]:
    store = {}
    for index in range(pages):
        store[f"page:{index}"] = {"id": f"page:{index}", "typeName": "page", "name": f"Page {index + 1}"}
    for index in range(shapes):
        store[f"shape:{index}"] = {"id": f"shape:{index}", "typeName": "shape", "type": "geo"}
    store["document:document"] = {"id": "document:document", "typeName": "document"}
    return {"store": store, "schema": {"schemaVersion": 2}}
