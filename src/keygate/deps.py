"""Repository construction and request-scoped dependencies for Keygate.

The repository is built once per application and kept on ``app.state``;
handlers reach it through these dependencies rather than module globals.
"""

from fastapi import Request

from keygate.common.config import KeygateSettings
from keygate.common.database import DatabaseManager
from keygate.keys.redis_repository import RedisKeyRepository
from keygate.keys.repository import KeyRepository
from keygate.keys.service import KeyService
from keygate.keys.sql_repository import SqlKeyRepository


def build_repository(settings: KeygateSettings) -> KeyRepository:
    """Instantiate the backend selected by KEYGATE_BACKEND."""
    if settings.backend == "sql":
        return SqlKeyRepository(DatabaseManager(settings.db_url))
    return RedisKeyRepository(settings.redis_url, prefix=settings.redis_prefix)


def get_app_settings(request: Request) -> KeygateSettings:
    return request.app.state.settings


def get_repository(request: Request) -> KeyRepository:
    return request.app.state.repository


def get_key_service(request: Request) -> KeyService:
    return request.app.state.key_service
