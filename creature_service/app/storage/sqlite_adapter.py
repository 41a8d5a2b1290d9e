"""
SQLite document store and simple migration system.

This adapter keeps creature documents in an embedded SQLite file so the
service can run without a MongoDB server.  Each row holds the ObjectId
of the record (as 24 hex characters) and the remaining fields as a JSON
document, which mirrors how a document store keeps them.

A new connection is opened for every operation and closed afterwards;
SQLite serialises writers on its own.  Schema changes are applied by
``init_db`` from the ``MIGRATIONS`` list, recording applied versions in
the ``migrations`` table.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

from .base import CreatureStorage, DecodeError, ScanIterator, StorageError

logger = logging.getLogger(__name__)

# Append new migrations with an incremented version number.
MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS creatures (
            id TEXT PRIMARY KEY,
            document TEXT NOT NULL
        );
        """,
    ),
]


class SQLiteCreatureStorage(CreatureStorage):
    """Creature storage backed by a SQLite file."""

    def __init__(self, path: str) -> None:
        self.path = str(Path(path).resolve())
        self.init_db()

    def get_connection(self, check_same_thread: bool = True) -> sqlite3.Connection:
        """Create and return a new SQLite connection."""
        conn = sqlite3.connect(self.path, check_same_thread=check_same_thread)
        conn.row_factory = sqlite3.Row
        return conn

    def _connect(self, check_same_thread: bool = True) -> sqlite3.Connection:
        try:
            return self.get_connection(check_same_thread)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot open database {self.path}: {exc}") from exc

    def init_db(self) -> None:
        """Create the database file if needed and apply pending migrations."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
            )
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current = row["version"] or 0
            for version, script in MIGRATIONS:
                if version <= current:
                    continue
                cursor.executescript(script)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                logger.info("Applied SQLite migration %s", version)
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"migration failed: {exc}") from exc
        finally:
            conn.close()

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Dict[str, Any]:
        try:
            document = json.loads(row["document"])
            document["_id"] = ObjectId(row["id"])
        except (TypeError, json.JSONDecodeError, InvalidId) as exc:
            raise DecodeError(f"row {row['id']!r} cannot be decoded: {exc}") from exc
        return document

    def insert(self, document: Dict[str, Any]) -> Any:
        key = ObjectId()
        conn = self._connect()
        try:
            conn.execute(
                "INSERT INTO creatures (id, document) VALUES (?, ?)",
                (str(key), json.dumps(document)),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"insert failed: {exc}") from exc
        finally:
            conn.close()
        return key

    def find_by_id(self, key: Any) -> Optional[Dict[str, Any]]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT id, document FROM creatures WHERE id = ?", (str(key),)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"find failed: {exc}") from exc
        finally:
            conn.close()
        if row is None:
            return None
        return self._row_to_document(row)

    def replace(self, key: Any, document: Dict[str, Any]) -> int:
        body = {k: v for k, v in document.items() if k != "_id"}
        conn = self._connect()
        try:
            cursor = conn.execute(
                "UPDATE creatures SET document = ? WHERE id = ?",
                (json.dumps(body), str(key)),
            )
            matched = cursor.rowcount
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"replace failed: {exc}") from exc
        finally:
            conn.close()
        return matched

    def delete_by_id(self, key: Any) -> int:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM creatures WHERE id = ?", (str(key),))
            affected = cursor.rowcount
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"delete failed: {exc}") from exc
        finally:
            conn.close()
        return affected

    def scan_all(self) -> ScanIterator:
        # The scan outlives the calling thread: a streamed response pulls
        # each row from whichever worker thread is free.  Access stays
        # sequential, so the connection may be shared across threads.
        conn = self._connect(check_same_thread=False)
        try:
            cursor = conn.execute("SELECT id, document FROM creatures ORDER BY rowid")
        except sqlite3.Error as exc:
            conn.close()
            raise StorageError(f"cannot open cursor: {exc}") from exc

        def release() -> None:
            try:
                cursor.close()
            finally:
                conn.close()

        documents = (self._row_to_document(row) for row in cursor)
        return ScanIterator(documents, release, error_types=(sqlite3.Error,))
