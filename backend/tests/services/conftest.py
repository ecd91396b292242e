"""Service test fixtures — async DB, DataService and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Services and routes share one SqlDataService over one session
    - get_data_service overridden; the lifespan never runs under ASGITransport

Design Decisions:
    - StaticPool: one connection, so every session sees the same :memory: db
    - Factories return real users (personal project included) via register_user
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import taskhub.models  # noqa: F401
from taskhub.api.dependencies import get_data_service
from taskhub.core.request_signing import sign_bot_request
from taskhub.db.base import Base
from taskhub.infrastructure.sql_data_service import SqlDataService
from taskhub.main import app
from taskhub.services.discord_account import create_link_code, redeem_link_code
from taskhub.services.user_accounts import issue_api_token, register_user


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def data(test_db):
    return SqlDataService(test_db)


@pytest.fixture
async def client(data):
    """FastAPI test client with the DataService dependency overridden."""
    async def override_get_data_service():
        yield data

    app.dependency_overrides[get_data_service] = override_get_data_service
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(data):
    """Register a user (and their personal project)."""
    async def _make(username: str, email: str | None = None, is_admin: bool = False):
        return await register_user(
            data, username, username.title(), email=email, is_admin=is_admin,
        )
    return _make


@pytest.fixture
def bearer(data):
    """Issue a fresh API token and return the Authorization header for it."""
    async def _bearer(user: dict) -> dict:
        token = await issue_api_token(data, user["id"])
        return {"Authorization": f"Bearer {token}"}
    return _bearer


@pytest.fixture
def link_discord(data):
    """Link a Discord id to an existing user through a real link code."""
    async def _link(user: dict, discord_user_id: str, handle: str = "tester") -> dict:
        issued = await create_link_code(data, user["id"], ttl_seconds=300)
        return await redeem_link_code(data, discord_user_id, issued["code"], handle)
    return _link


@pytest.fixture
def bot_headers():
    """Freshly signed bot-channel headers for a Discord user id."""
    def _headers(discord_user_id: str, username: str | None = None, **kwargs) -> dict:
        return sign_bot_request(
            discord_user_id, os.environ["DISCORD_BOT_SECRET"],
            username=username, **kwargs,
        ).as_headers()
    return _headers
