"""Tests for the application factory: health, error boundary, lifespan."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from keygate.app import create_app, keepalive
from keygate.common.database import DatabaseManager
from keygate.deps import build_repository
from keygate.keys.redis_repository import RedisKeyRepository
from keygate.keys.sql_repository import SqlKeyRepository
from tests.conftest import make_redis_repository, make_settings


class TestHealth:
    async def test_health(self, client, repository):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "keygate"
        assert data["backend"] == repository.name
        assert data["store"] == "ok"

    async def test_health_degraded(self, client, repository, monkeypatch):
        monkeypatch.setattr(repository, "ping", AsyncMock(return_value=False))
        resp = await client.get("/health")
        assert resp.json()["store"] == "unreachable"


class TestErrorBoundary:
    async def test_unknown_route(self, client):
        resp = await client.get("/nope")
        assert resp.status_code == 404
        assert "message" in resp.json()

    async def test_unhandled_error_is_generic_500(self, app, admin_headers, monkeypatch):
        monkeypatch.setattr(
            app.state.key_service, "delete_key", AsyncMock(side_effect=RuntimeError("boom")),
        )
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.post("/delete-key", json={"key": "k"}, headers=admin_headers)
        assert resp.status_code == 500
        assert resp.json() == {"message": "internal server error"}


class TestBuildRepository:
    def test_redis_backend(self):
        repo = build_repository(make_settings(backend="redis", redis_prefix="p:"))
        assert isinstance(repo, RedisKeyRepository)
        assert repo.prefix == "p:"

    def test_sql_backend(self):
        repo = build_repository(make_settings(backend="sql"))
        assert isinstance(repo, SqlKeyRepository)
        assert isinstance(repo.db, DatabaseManager)


class TestLifespan:
    async def test_init_and_close(self):
        repo = make_redis_repository()
        repo.init = AsyncMock()
        repo.close = AsyncMock()
        app = create_app(make_settings(), repository=repo)
        async with app.router.lifespan_context(app):
            repo.init.assert_awaited_once()
        repo.close.assert_awaited_once()

    async def test_keepalive_task_cancelled_on_shutdown(self):
        created = []
        real_create_task = asyncio.create_task

        def spy(coro):
            task = real_create_task(coro)
            created.append(task)
            return task

        app = create_app(make_settings(keepalive_interval=3600), repository=make_redis_repository())
        with patch("keygate.app.asyncio.create_task", side_effect=spy):
            async with app.router.lifespan_context(app):
                assert len(created) == 1
        assert created[0].cancelled()

    async def test_no_keepalive_when_disabled(self):
        app = create_app(make_settings(keepalive_interval=0), repository=make_redis_repository())
        with patch("keygate.app.asyncio.create_task") as create_task:
            async with app.router.lifespan_context(app):
                pass
        create_task.assert_not_called()

    async def test_keepalive_logs(self):
        with patch("keygate.app.logger") as logger:
            task = asyncio.create_task(keepalive(0.01))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        assert logger.info.call_count >= 1
