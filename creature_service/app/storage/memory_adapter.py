"""
In-process storage for creature records.

Used by the test-suite and for running the service locally without a
database.  Documents live in a dict keyed by ObjectId and are copied on
the way in and out, so callers can never mutate stored state by
accident.  ``open_scans`` counts iterators returned by ``scan_all`` that
have not yet been released.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, Optional

from bson import ObjectId

from .base import CreatureStorage, ScanIterator


class InMemoryCreatureStorage(CreatureStorage):
    """Creature storage kept in a dict guarded by a lock."""

    def __init__(self) -> None:
        self._documents: Dict[ObjectId, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        self.open_scans = 0

    def insert(self, document: Dict[str, Any]) -> Any:
        key = ObjectId()
        stored = copy.deepcopy(document)
        stored["_id"] = key
        with self._lock:
            self._documents[key] = stored
        return key

    def find_by_id(self, key: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def replace(self, key: Any, document: Dict[str, Any]) -> int:
        stored = copy.deepcopy(document)
        stored["_id"] = key
        with self._lock:
            if key not in self._documents:
                return 0
            self._documents[key] = stored
            return 1

    def delete_by_id(self, key: Any) -> int:
        with self._lock:
            return 1 if self._documents.pop(key, None) is not None else 0

    def scan_all(self) -> ScanIterator:
        with self._lock:
            snapshot = [copy.deepcopy(document) for document in self._documents.values()]
            self.open_scans += 1
        return ScanIterator(snapshot, self._release_scan)

    def _release_scan(self) -> None:
        with self._lock:
            self.open_scans -= 1

    def put_raw(self, key: Any, document: Any) -> None:
        """Store ``document`` under ``key`` without any checks.

        Lets tests plant records that fail decoding.
        """
        with self._lock:
            self._documents[key] = document

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
