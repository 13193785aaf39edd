"""
Shared fixtures: an in-memory SQLite database, an in-process stand-in for
Redis, a temporary document bucket and an HTTP client bound to the app.
"""
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from swasthya.api.deps import get_storage_service, get_sync_service
from swasthya.core.redis import redis_client
from swasthya.db.session import get_session
from swasthya.main import app
from swasthya.services.storage_service import StorageService
from swasthya.services.sync_service import SyncService


class FakeRedis:
    """Implements the handful of Redis commands RedisClient uses."""

    def __init__(self):
        self.store = {}
        self.sets = {}

    async def set(self, key, value, ex=None):
        self.store[key] = value

    async def get(self, key):
        return self.store.get(key)

    async def delete(self, key):
        self.store.pop(key, None)

    async def sadd(self, key, *values):
        self.sets.setdefault(key, set()).update(values)

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def srem(self, key, *values):
        self.sets.get(key, set()).difference_update(values)

    async def close(self):
        pass


WORKER_PAYLOAD = {
    "name": "Ravi Kumar",
    "mobile_number": "9876543210",
    "email": "ravi@example.com",
    "address": "12 Market Road, Kochi",
    "date_of_birth": "1990-05-01",
    "aadhar_number": "123456781234",
    "district": "Ernakulam",
}


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "redis", fake)
    return fake


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def file_session_factory(tmp_path):
    # One connection per session so concurrent calls really interleave
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path):
    return StorageService(root=tmp_path)


@pytest.fixture
async def client(session_factory, storage, fake_redis):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_storage_service] = lambda: storage
    app.dependency_overrides[get_sync_service] = lambda: SyncService(session_factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def worker_payload():
    return dict(WORKER_PAYLOAD)


@pytest.fixture
async def registered_worker(client, worker_payload):
    response = await client.post("/api/v1/workers/register", json=worker_payload)
    assert response.status_code == 200, response.text
    return response.json()["worker"]


@pytest.fixture
async def doctor_headers(client):
    response = await client.post("/api/v1/doctors/login", json={
        "doctor_id": "KL/12345/2021",
        "name": "Asha Menon",
        "hospital_name": "General Hospital Kochi",
    })
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
