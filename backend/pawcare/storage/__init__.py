# Storage package init
"""
PawCare Backend — Storage Layer
=================================

    StorageAdapter (abstract, base.py)
    └── SQLAlchemyStorageAdapter (shared queries, sql.py)
        ├── SQLiteStorageAdapter
        ├── MySQLStorageAdapter
        └── PostgresStorageAdapter

`create_storage_adapter(settings)` picks one at startup.
"""

from pawcare.storage.backends import (
    MySQLStorageAdapter,
    PostgresStorageAdapter,
    SQLiteStorageAdapter,
    create_storage_adapter,
)
from pawcare.storage.base import StorageAdapter

__all__ = [
    "MySQLStorageAdapter",
    "PostgresStorageAdapter",
    "SQLiteStorageAdapter",
    "StorageAdapter",
    "create_storage_adapter",
]
