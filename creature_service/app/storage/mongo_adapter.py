"""
MongoDB adapter for ``CreatureStorage``.

Documents are stored in a single collection; MongoDB (through pymongo)
assigns the ``_id`` ObjectId on insert.  Every ``PyMongoError`` is
re-raised as ``StorageError`` so the service layer does not depend on
the driver.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .base import CreatureStorage, ScanIterator, StorageError

logger = logging.getLogger(__name__)


class MongoCreatureStorage(CreatureStorage):
    """Creature storage backed by a MongoDB collection.

    Either pass ``url`` (a connection string) or an already open
    ``collection``.  The latter is how tests substitute a stub.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        database: str = "creaturedb",
        collection_name: str = "creatures",
        collection: Any = None,
    ) -> None:
        self._client: Optional[MongoClient] = None
        if collection is None:
            if not url:
                raise ValueError("MongoDB connection string is required")
            logger.info("Connecting to MongoDB database %s", database)
            self._client = MongoClient(url)
            collection = self._client[database][collection_name]
        self.collection = collection

    def insert(self, document: Dict[str, Any]) -> Any:
        try:
            result = self.collection.insert_one(dict(document))
        except PyMongoError as exc:
            raise StorageError(f"insert failed: {exc}") from exc
        return result.inserted_id

    def find_by_id(self, key: Any) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one({"_id": key})
        except PyMongoError as exc:
            raise StorageError(f"find failed: {exc}") from exc

    def replace(self, key: Any, document: Dict[str, Any]) -> int:
        try:
            result = self.collection.replace_one({"_id": key}, dict(document))
        except PyMongoError as exc:
            raise StorageError(f"replace failed: {exc}") from exc
        return result.matched_count

    def delete_by_id(self, key: Any) -> int:
        try:
            result = self.collection.delete_one({"_id": key})
        except PyMongoError as exc:
            raise StorageError(f"delete failed: {exc}") from exc
        return result.deleted_count

    def scan_all(self) -> ScanIterator:
        try:
            cursor = self.collection.find({})
        except PyMongoError as exc:
            raise StorageError(f"cannot open cursor: {exc}") from exc
        return ScanIterator(cursor, cursor.close, error_types=(PyMongoError,))

    def close(self) -> None:
        if self._client is not None:
            logger.info("Closing MongoDB connection")
            self._client.close()
            self._client = None
