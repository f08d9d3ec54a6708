"""
PawCare Backend — Concrete Storage Backends
=============================================

What:  One adapter class per supported engine plus the startup factory.
Why:   Engine-specific setup (driver, pool sizing, connection PRAGMAs) lives
       here and nowhere else; queries are shared in sql.py.

Backends:
    sqlite   → aiosqlite, file database, foreign keys enabled per connection
    mysql    → aiomysql, pooled, utf8mb4
    postgres → asyncpg, pooled

Connection Pooling Strategy (server engines):
    pool_size / max_overflow come from settings (DB_POOL_SIZE, DB_MAX_OVERFLOW)
    pool_pre_ping catches connections dropped by a database restart
    pool_recycle=3600 stays below MySQL's default wait_timeout
"""

import logging
from pathlib import Path
from typing import Any, Dict, Type

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

from pawcare.config import Settings
from pawcare.storage.base import StorageAdapter
from pawcare.storage.sql import SQLAlchemyStorageAdapter

logger = logging.getLogger(__name__)


class SQLiteStorageAdapter(SQLAlchemyStorageAdapter):
    """Embedded single-file database; the default for development."""

    backend_name = "sqlite"

    def __init__(self, settings: Settings):
        if not settings.database_url and settings.sqlite_path != ":memory:":
            Path(settings.sqlite_path).expanduser().resolve().parent.mkdir(
                parents=True, exist_ok=True
            )
        super().__init__(settings)

    def _configure_engine(self, engine: AsyncEngine) -> None:
        # SQLite ignores ON DELETE CASCADE / SET NULL unless enabled per connection
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()


class _PooledStorageAdapter(SQLAlchemyStorageAdapter):
    def _engine_options(self) -> Dict[str, Any]:
        options = super()._engine_options()
        options.update(
            pool_size=self.settings.db_pool_size,
            max_overflow=self.settings.db_max_overflow,
            pool_pre_ping=self.settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
        return options


class MySQLStorageAdapter(_PooledStorageAdapter):
    backend_name = "mysql"


class PostgresStorageAdapter(_PooledStorageAdapter):
    backend_name = "postgres"


ADAPTERS: Dict[str, Type[StorageAdapter]] = {
    "sqlite": SQLiteStorageAdapter,
    "mysql": MySQLStorageAdapter,
    "postgres": PostgresStorageAdapter,
}


def create_storage_adapter(settings: Settings) -> StorageAdapter:
    """
    Build the adapter named by settings.database_backend.

    Called once by the app factory. Settings validation already rejects
    unknown names; the KeyError branch covers settings built with
    model_construct() or mutated after validation.
    """
    try:
        adapter_class = ADAPTERS[settings.database_backend]
    except KeyError:
        raise ValueError(
            f"Unsupported database backend '{settings.database_backend}'. "
            f"Choose one of: {', '.join(sorted(ADAPTERS))}"
        ) from None
    adapter = adapter_class(settings)
    logger.info("Using %s storage backend", adapter.backend_name)
    return adapter
