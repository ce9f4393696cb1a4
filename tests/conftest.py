from typing import AsyncGenerator, Dict

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from dbmonitor.auth.services import ensure_admin
from dbmonitor.db.meta import meta
from dbmonitor.db.models import load_all_models
from dbmonitor.monitoring.services import seed_reference_data
from dbmonitor.web.application import get_app
from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, approved_user, login


@pytest.fixture
def anyio_backend() -> str:
    """
    Backend for anyio pytest plugin.

    :return: backend name.
    """
    return "asyncio"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite database shared by every connection of one test."""
    load_all_models()
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(meta.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        await seed_reference_data(session)
        await ensure_admin(
            session, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, name="Admin",
        )
        await session.commit()
    return factory


@pytest.fixture
async def dbsession(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fastapi_app(engine: AsyncEngine, session_factory: async_sessionmaker) -> FastAPI:
    """
    Fixture for creating FastAPI app.

    The lifespan does not run under ASGITransport, so the database
    state it would set up is attached here.
    """
    application = get_app()
    application.state.db_engine = engine
    application.state.db_session_factory = session_factory
    return application


@pytest.fixture
async def client(fastapi_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def admin_headers(client: AsyncClient) -> Dict[str, str]:
    return await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
async def user_headers(client: AsyncClient, admin_headers: Dict[str, str]) -> Dict[str, str]:
    return await approved_user(client, admin_headers, "operator@example.com")
