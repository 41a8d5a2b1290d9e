"""
Storage backend factory.

Maps the ``STORAGE_BACKEND`` setting to an adapter class and builds it
with the connection parameters taken from ``Settings``.
"""

import logging
from typing import Callable, Dict

from creature_service.app.core.config import Settings

from .base import CreatureStorage
from .memory_adapter import InMemoryCreatureStorage
from .mongo_adapter import MongoCreatureStorage
from .sqlite_adapter import SQLiteCreatureStorage

logger = logging.getLogger(__name__)


def _build_mongo(settings: Settings) -> CreatureStorage:
    return MongoCreatureStorage(
        url=settings.mongodb_url,
        database=settings.mongodb_database,
        collection_name=settings.mongodb_collection,
    )


def _build_sqlite(settings: Settings) -> CreatureStorage:
    return SQLiteCreatureStorage(settings.database_url)


def _build_memory(settings: Settings) -> CreatureStorage:
    return InMemoryCreatureStorage()


_backends: Dict[str, Callable[[Settings], CreatureStorage]] = {
    "mongo": _build_mongo,
    "sqlite": _build_sqlite,
    "memory": _build_memory,
}


def create_storage(settings: Settings) -> CreatureStorage:
    """Create the storage adapter selected by ``settings.storage_backend``.

    Raises:
        ValueError: the backend name is not registered.
    """
    name = settings.storage_backend.lower()
    if name not in _backends:
        raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")
    logger.info("Using %s storage backend", name)
    return _backends[name](settings)


def register_backend(name: str, builder: Callable[[Settings], CreatureStorage]) -> None:
    """Register a builder for an additional storage backend."""
    _backends[name.lower()] = builder
    logger.info("Registered storage backend: %s", name)


def get_supported_backends() -> list:
    return list(_backends.keys())
