"""
Key repository port.

Defines the persistence contract shared by the Redis and SQL backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from keygate.common.models import utcnow


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class KeyRecord:
    """A stored key and who it belongs to."""

    key: str
    owner: str
    created_at: datetime = field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())


class KeyRepository(ABC):
    """
    Abstract repository for KeyRecord entities.

    Implementations wrap backend failures in StoreError and report
    duplicate inserts as ConflictError.
    """

    name: str = ""

    async def init(self) -> None:
        """Open connections and prepare the schema."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def ping(self) -> bool:
        """True if the backend answers."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True if a record with this key is stored."""

    @abstractmethod
    async def get(self, key: str) -> Optional[KeyRecord]:
        """Return the record for `key`, or None."""

    @abstractmethod
    async def insert(self, record: KeyRecord) -> None:
        """
        Store a new record.

        Raises:
            ConflictError: a record with the same key already exists
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove the record; True if one was removed."""

    @abstractmethod
    async def list_records(self, offset: int, limit: int) -> tuple[list[KeyRecord], int]:
        """Return one page of records in stable order, plus the total count."""
