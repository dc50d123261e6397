"""Redis key backend with native per-key expiry."""

import json
import re
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from keygate.common.exceptions import ConflictError, StoreError
from keygate.common.logging import get_logger
from keygate.common.models import utcnow
from keygate.keys.expiry import parse_timestamp, ttl_seconds
from keygate.keys.repository import KeyRecord, KeyRepository

logger = get_logger("keys.redis")

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")
SCAN_BATCH = 500


def _encode(record: KeyRecord) -> str:
    return json.dumps({
        "owner": record.owner,
        "createdAt": record.created_at.isoformat(),
        "expiresAt": record.expires_at.isoformat() if record.expires_at else None,
    })


def _decode(key: str, raw: str) -> KeyRecord:
    data = json.loads(raw)
    expires_at = data.get("expiresAt")
    return KeyRecord(
        key=key,
        owner=data["owner"],
        created_at=parse_timestamp(data["createdAt"]),
        expires_at=parse_timestamp(expires_at) if expires_at else None,
    )


class RedisKeyRepository(KeyRepository):
    """
    Stores each record as a JSON string under `<prefix><key>`.

    Inserts use SET NX so a duplicate never overwrites. When a record has an
    expiry, Redis evicts it after floor(expiresAt - now) seconds; a record
    whose remaining lifetime is under one second is stored without TTL and
    left to lazy expiration on read.
    """

    name = "redis"

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "keygate:",
        client: Optional[aioredis.Redis] = None,
    ):
        self._url = url
        self.prefix = prefix
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            raise RuntimeError("RedisKeyRepository not initialized, call init() first")
        return self._client

    async def init(self) -> None:
        if self._client is None:
            self._client = aioredis.from_url(self._url, decode_responses=True)
            logger.info("Redis backend configured for %s", self._url)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _name(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _failure(self, operation: str, exc: Exception) -> StoreError:
        logger.error("Redis %s failed: %s", operation, exc)
        return StoreError()

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.client.exists(self._name(key)))
        except RedisError as e:
            raise self._failure("exists", e) from e

    async def get(self, key: str) -> Optional[KeyRecord]:
        try:
            raw = await self.client.get(self._name(key))
        except RedisError as e:
            raise self._failure("get", e) from e
        if raw is None:
            return None
        try:
            return _decode(key, raw)
        except (ValueError, KeyError, TypeError) as e:
            raise self._failure(f"decode of {key!r}", e) from e

    async def insert(self, record: KeyRecord) -> None:
        ttl = None
        if record.expires_at is not None:
            remaining = ttl_seconds(record.expires_at, utcnow())
            if remaining >= 1:
                ttl = remaining
        try:
            stored = await self.client.set(
                self._name(record.key), _encode(record), nx=True, ex=ttl
            )
        except RedisError as e:
            raise self._failure("insert", e) from e
        if not stored:
            raise ConflictError(f"key '{record.key}' already exists")

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.client.delete(self._name(key)))
        except RedisError as e:
            raise self._failure("delete", e) from e

    async def list_records(self, offset: int, limit: int) -> tuple[list[KeyRecord], int]:
        pattern = _GLOB_SPECIAL.sub(r"\\\1", self.prefix) + "*"
        try:
            names = sorted([
                name async for name in self.client.scan_iter(match=pattern, count=SCAN_BATCH)
            ])
            page = names[offset:offset + limit]
            values = await self.client.mget(page) if page else []
        except RedisError as e:
            raise self._failure("list", e) from e

        records = []
        for name, raw in zip(page, values):
            # evicted between SCAN and MGET
            if raw is None:
                continue
            key = name[len(self.prefix):]
            try:
                records.append(_decode(key, raw))
            except (ValueError, KeyError, TypeError) as e:
                raise self._failure(f"decode of {key!r}", e) from e
        return records, len(names)
