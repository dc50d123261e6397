"""Shared test fixtures for Keygate."""

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient

from keygate.common.config import KeygateSettings
from keygate.common.database import DatabaseManager
from keygate.keys.redis_repository import RedisKeyRepository
from keygate.keys.sql_repository import SqlKeyRepository


API_KEY = "test-admin-api-key"


def make_settings(**overrides) -> KeygateSettings:
    defaults = {
        "api_key": API_KEY,
        "keepalive_interval": 0,
        "db_url": "sqlite+aiosqlite://",
        "redis_prefix": "test:",
    }
    defaults.update(overrides)
    return KeygateSettings(**defaults)


def make_redis_repository() -> RedisKeyRepository:
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    return RedisKeyRepository(prefix="test:", client=client)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture(params=["redis", "sql"])
async def repository(request):
    """Each test using this fixture runs once per backend."""
    if request.param == "redis":
        repo = make_redis_repository()
    else:
        repo = SqlKeyRepository(DatabaseManager("sqlite+aiosqlite://"))
    await repo.init()
    yield repo
    await repo.close()


@pytest.fixture
async def redis_repository():
    repo = make_redis_repository()
    await repo.init()
    yield repo
    await repo.close()


@pytest.fixture
def app(settings, repository):
    from keygate.app import create_app
    return create_app(settings, repository=repository)


@pytest.fixture
async def client(app):
    # ASGITransport doesn't run lifespan; the repository fixture already did init()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def admin_headers():
    return {"X-Api-Key": API_KEY}
