import fnmatch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app import database
from app.auth import verify_token
from app.cache import service as cache_service_module
from app.cache.service import CacheService
from app.customers.repository import CustomerRepository
from app.customers.service import CustomerService


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands the cache uses."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def keys(self, pattern: str) -> list[str]:
        return [k for k in self.store if fnmatch.fnmatchcase(k, pattern)]

    async def info(self, section: str | None = None) -> dict:
        return {"used_memory_human": "1.05M", "used_memory": 1100000}

    async def dbsize(self) -> int:
        return len(self.store)


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Connected cache backed by an in-memory store."""
    redis = FakeRedis()
    monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: True)
    monkeypatch.setattr(cache_service_module, "get_redis", lambda: redis)
    return redis


@pytest.fixture
def redis_down(monkeypatch) -> None:
    def _unreachable():
        raise AssertionError("client must not be touched while disconnected")

    monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: False)
    monkeypatch.setattr(cache_service_module, "get_redis", _unreachable)


@pytest.fixture
def cache() -> CacheService:
    return CacheService(default_ttl=300)


@pytest_asyncio.fixture
async def db(tmp_path):
    conn = await database.init_database(str(tmp_path / "test.db"))
    yield conn
    await database.close_database()


@pytest.fixture
def customer_repo(db) -> CustomerRepository:
    return CustomerRepository(db)


@pytest.fixture
def customer_service(customer_repo, cache) -> CustomerService:
    return CustomerService(customer_repo, cache)


@pytest_asyncio.fixture
async def api_client(db):
    from app.main import app

    app.dependency_overrides[verify_token] = lambda: {"sub": "tester"}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
