"""Relational key backend; expiry is stored as data and enforced on read."""

from typing import Optional

from sqlalchemy import delete, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from keygate.common.database import DatabaseManager
from keygate.common.exceptions import ConflictError, StoreError
from keygate.common.logging import get_logger
from keygate.keys.models import KeyModel
from keygate.keys.repository import KeyRecord, KeyRepository, as_utc

logger = get_logger("keys.sql")


def _to_record(row: KeyModel) -> KeyRecord:
    return KeyRecord(
        key=row.key,
        owner=row.owner,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
    )


class SqlKeyRepository(KeyRepository):
    """Single `keys` table keyed by the key string."""

    name = "sql"

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def init(self) -> None:
        await self.db.init()
        await self.db.create_all()

    async def close(self) -> None:
        await self.db.close()

    def _failure(self, operation: str, exc: Exception) -> StoreError:
        logger.error("SQL %s failed: %s", operation, exc)
        return StoreError()

    async def ping(self) -> bool:
        try:
            async with self.db.get_session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError) as e:
            logger.warning("SQL ping failed: %s", e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            async with self.db.get_session() as session:
                result = await session.execute(
                    select(KeyModel.key).where(KeyModel.key == key)
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            raise self._failure("exists", e) from e

    async def get(self, key: str) -> Optional[KeyRecord]:
        try:
            async with self.db.get_session() as session:
                row = await session.get(KeyModel, key)
                return _to_record(row) if row else None
        except SQLAlchemyError as e:
            raise self._failure("get", e) from e

    async def insert(self, record: KeyRecord) -> None:
        try:
            async with self.db.get_session() as session:
                session.add(KeyModel(
                    key=record.key,
                    owner=record.owner,
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                ))
                await session.flush()
        except IntegrityError as e:
            logger.info("Duplicate insert rejected for key %r", record.key)
            raise ConflictError(f"key '{record.key}' already exists") from e
        except SQLAlchemyError as e:
            raise self._failure("insert", e) from e

    async def delete(self, key: str) -> bool:
        try:
            async with self.db.get_session() as session:
                result = await session.execute(
                    delete(KeyModel).where(KeyModel.key == key)
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise self._failure("delete", e) from e

    async def list_records(self, offset: int, limit: int) -> tuple[list[KeyRecord], int]:
        try:
            async with self.db.get_session() as session:
                total = (await session.execute(
                    select(func.count()).select_from(KeyModel)
                )).scalar_one()
                result = await session.execute(
                    select(KeyModel)
                    .order_by(KeyModel.created_at, KeyModel.key)
                    .offset(offset)
                    .limit(limit)
                )
                return [_to_record(row) for row in result.scalars().all()], total
        except SQLAlchemyError as e:
            raise self._failure("list", e) from e
