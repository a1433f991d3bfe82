from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import coursehub.models  # noqa: F401 - register with Base
from coursehub.config import Settings, get_settings
from coursehub.core.postgres import Base, make_session_factory
from coursehub.core.roles import Role
from coursehub.database import set_session_factory
from coursehub.dependencies import get_redis
from coursehub.main import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite://"


class FakeRedis:
    """In-memory stand-in for the handful of Redis calls the cache layer makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        jwt_secret="test-secret",
        jwt_issuer="coursehub-identity",
        jwt_audience="coursehub-api",
        lesson_cache_ttl_secs=60,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    test_settings: Settings,
    fake_redis: FakeRedis,
) -> FastAPI:
    app = create_app()
    set_session_factory(session_factory)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_redis] = lambda: fake_redis
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_token(test_settings: Settings) -> Callable[..., str]:
    def _make(
        *,
        user_id: UUID | None = None,
        roles: list[Role] | None = None,
        secret: str | None = None,
        expires_in: timedelta = timedelta(minutes=15),
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {
            "sub": str(user_id or uuid4()),
            "email": "tester@example.com",
            "roles": [r.value for r in (roles if roles is not None else [Role.USER])],
            "iss": test_settings.jwt_issuer,
            "aud": test_settings.jwt_audience,
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        payload.update(claims)
        return jwt.encode(
            payload,
            secret or test_settings.jwt_secret,
            algorithm=test_settings.jwt_algorithm,
        )

    return _make


@pytest.fixture
def user_headers(make_token: Callable[..., str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def admin_headers(make_token: Callable[..., str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(roles=[Role.ADMIN])}"}
