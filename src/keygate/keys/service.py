"""Key service: issue, verify, list and revoke access keys."""

from dataclasses import dataclass
from typing import Optional

from keygate.common.config import KeygateSettings
from keygate.common.exceptions import StoreError
from keygate.common.logging import get_logger
from keygate.common.models import utcnow
from keygate.keygen.generator import generate_unique_key
from keygate.keys.expiry import Expiry
from keygate.keys.repository import KeyRecord, KeyRepository

logger = get_logger("keys.service")


@dataclass
class Verification:
    """Outcome of a verify call."""

    valid: bool
    code: str
    message: str
    owner: Optional[str] = None


class KeyService:
    """Key operations over an injected repository."""

    def __init__(self, settings: KeygateSettings, repository: KeyRepository):
        self.settings = settings
        self.repository = repository

    async def verify(self, key: str) -> Verification:
        """Check a key; an expired record is deleted on the way."""
        record = await self.repository.get(key)
        if record is None:
            return Verification(False, "NOT_FOUND", "invalid key")

        if record.is_expired():
            try:
                await self.repository.delete(key)
            except StoreError:
                logger.warning("Could not remove expired key %r", key)
            return Verification(False, "EXPIRED", "key expired")

        return Verification(True, "OK", "access granted", owner=record.owner)

    async def add_key(
        self, key: str, owner: str, expiry: Optional[Expiry] = None,
    ) -> KeyRecord:
        """Store a caller-supplied key. Raises ConflictError if it exists."""
        record = self._new_record(key, owner, expiry)
        await self.repository.insert(record)
        logger.info("Key added for owner %r", owner)
        return record

    async def generate_key(
        self, owner: str, expiry: Optional[Expiry] = None,
    ) -> KeyRecord:
        """Generate a fresh unique key for `owner` and store it."""
        key = await generate_unique_key(
            self.repository.exists,
            length=self.settings.key_length,
            max_attempts=self.settings.key_max_attempts,
        )
        record = self._new_record(key, owner, expiry)
        # SET NX / primary key still guard the race between exists() and insert()
        await self.repository.insert(record)
        logger.info("Key generated for owner %r", owner)
        return record

    async def delete_key(self, key: str) -> bool:
        deleted = await self.repository.delete(key)
        if deleted:
            logger.info("Key deleted")
        return deleted

    async def list_keys(self, page: int, limit: int) -> tuple[list[KeyRecord], int]:
        offset = (page - 1) * limit
        return await self.repository.list_records(offset, limit)

    @staticmethod
    def _new_record(key: str, owner: str, expiry: Optional[Expiry]) -> KeyRecord:
        now = utcnow()
        return KeyRecord(
            key=key,
            owner=owner,
            created_at=now,
            expires_at=expiry.resolve(now) if expiry else None,
        )
