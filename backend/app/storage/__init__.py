"""
Domain store backends.
"""
from app.core.config import Settings
from app.core.database import Database
from app.storage.base import Storage, StorageError, DuplicateRecordError, DuplicateVoteError
from app.storage.memory import MemoryStorage
from app.storage.sql import SqlStorage


def create_storage(settings: Settings) -> Storage:
    """Build the store selected by STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "memory":
        return MemoryStorage()

    database = Database(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
    )
    return SqlStorage(database)


__all__ = [
    "Storage",
    "StorageError",
    "DuplicateRecordError",
    "DuplicateVoteError",
    "MemoryStorage",
    "SqlStorage",
    "create_storage",
]
