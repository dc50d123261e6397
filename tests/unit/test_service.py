"""Tests for KeyService over real repositories."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from keygate.common.exceptions import ConflictError, GenerationExhaustedError, StoreError
from keygate.keygen.generator import ALPHABET
from keygate.keys.expiry import DeadlineExpiry, DurationExpiry
from keygate.keys.repository import KeyRecord
from keygate.keys.service import KeyService
from tests.conftest import make_settings


@pytest.fixture
def svc(repository):
    return KeyService(make_settings(), repository)


class TestVerify:
    async def test_unknown_key(self, svc):
        result = await svc.verify("nope")
        assert result.valid is False
        assert result.code == "NOT_FOUND"
        assert result.message == "invalid key"

    async def test_valid_key(self, svc):
        await svc.add_key("k-valid", "alice")
        result = await svc.verify("k-valid")
        assert result.valid is True
        assert result.owner == "alice"
        assert result.message == "access granted"

    async def test_expired_key_is_removed(self, svc, repository):
        await svc.add_key("k-old", "bob", DeadlineExpiry(datetime(2000, 1, 1, tzinfo=timezone.utc)))
        result = await svc.verify("k-old")
        assert result.valid is False
        assert result.code == "EXPIRED"
        assert await repository.exists("k-old") is False

    async def test_cleanup_failure_not_surfaced(self):
        expired = KeyRecord(
            key="k", owner="o",
            expires_at=datetime.now(timezone.utc) - timedelta(seconds=5),
        )
        repo = AsyncMock()
        repo.get.return_value = expired
        repo.delete.side_effect = StoreError()
        result = await KeyService(make_settings(), repo).verify("k")
        assert result.valid is False
        assert result.code == "EXPIRED"


class TestIssue:
    async def test_add_key_with_duration(self, svc):
        record = await svc.add_key("k-dur", "carol", DurationExpiry(60))
        assert record.expires_at - record.created_at == timedelta(seconds=60)

    async def test_add_key_without_expiry(self, svc):
        record = await svc.add_key("k-none", "carol")
        assert record.expires_at is None

    async def test_add_duplicate(self, svc):
        await svc.add_key("k-dup", "alice")
        with pytest.raises(ConflictError):
            await svc.add_key("k-dup", "bob")

    async def test_generate_key(self, svc, repository):
        record = await svc.generate_key("dave")
        assert len(record.key) == 16
        assert all(ch in ALPHABET for ch in record.key)
        stored = await repository.get(record.key)
        assert stored.owner == "dave"

    async def test_generate_key_configured_length(self, repository):
        svc = KeyService(make_settings(key_length=24), repository)
        record = await svc.generate_key("erin")
        assert len(record.key) == 24

    async def test_generate_exhausted(self):
        repo = AsyncMock()
        repo.exists.return_value = True
        svc = KeyService(make_settings(key_max_attempts=5), repo)
        with pytest.raises(GenerationExhaustedError):
            await svc.generate_key("frank")
        assert repo.exists.await_count == 5
        repo.insert.assert_not_awaited()


class TestDeleteAndList:
    async def test_delete(self, svc):
        await svc.add_key("k-del", "alice")
        assert await svc.delete_key("k-del") is True
        assert await svc.delete_key("k-del") is False

    async def test_list_offsets(self, svc):
        for i in range(12):
            await svc.add_key(f"k{i:02d}", "alice")
        records, total = await svc.list_keys(page=2, limit=5)
        assert total == 12
        assert len(records) == 5
