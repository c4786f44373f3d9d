import os
import tempfile
from pathlib import Path

TEST_DB_PATH = Path(tempfile.gettempdir()) / "garden_logbook_test.db"

# Settings are read at import time, so these must be set before the app is imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["REQUEST_LOG_ENABLED"] = "false"
os.environ["GOVEE_API_KEY_ENCRYPTION_KEY"] = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="
os.environ["EMAIL_HOST"] = ""
os.environ.pop("CRON_SECRET", None)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from garden_logbook.core.deps import get_redis
from garden_logbook.db.base import Base
from garden_logbook.db.session import get_db
from garden_logbook.main import app
import garden_logbook.models  # noqa: F401

# NullPool so no connection outlives the event loop of the test that opened it
engine = create_async_engine(os.environ["DATABASE_URL"], echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class FakeRedis:
    """The subset of redis.asyncio.Redis the app uses, backed by a dict."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None):
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex

    async def setex(self, key: str, ttl: int, value: str):
        self.store[key] = value
        self.ttls[key] = ttl


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db():
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture
async def client(db: AsyncSession, fake_redis: FakeRedis):
    async def override_get_db():
        yield db

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def register(client: AsyncClient):
    """Return an async helper that registers a user, logs in and returns auth headers."""

    async def _register(email: str, first_name: str = "Test", last_name: str | None = "User") -> dict:
        payload: dict = {"first_name": first_name, "email": email, "password": "testpass"}
        if last_name is not None:
            payload["last_name"] = last_name
        await client.post("/api/v1/auth/register", json=payload)
        login = await client.post("/api/v1/auth/login", data={"username": email, "password": "testpass"})
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _register
