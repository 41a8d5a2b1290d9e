"""
Document-store adapters for creature records.

``CreatureStorage`` is the port the service layer depends on; the
MongoDB, SQLite and in-memory adapters implement it and
``create_storage`` picks one based on configuration.
"""

from .base import (
    CreatureStorage,
    DecodeError,
    InvalidKeyError,
    KeyCodec,
    ObjectIdCodec,
    ScanIterator,
    StorageError,
    StoredCreature,
)
from .factory import create_storage, get_supported_backends, register_backend
from .memory_adapter import InMemoryCreatureStorage
from .mongo_adapter import MongoCreatureStorage
from .sqlite_adapter import SQLiteCreatureStorage

__all__ = [
    "CreatureStorage",
    "DecodeError",
    "InMemoryCreatureStorage",
    "InvalidKeyError",
    "KeyCodec",
    "MongoCreatureStorage",
    "ObjectIdCodec",
    "SQLiteCreatureStorage",
    "ScanIterator",
    "StorageError",
    "StoredCreature",
    "create_storage",
    "get_supported_backends",
    "register_backend",
]
