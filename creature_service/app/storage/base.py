"""
Storage port for creature records.

The service layer talks to persistence only through
``CreatureStorage``.  Adapters exchange plain documents (dicts) with the
handler; turning a document into a ``StoredCreature`` is done by
``StoredCreature.from_document`` so that every backend fails decoding in
the same way.

Storage keys are opaque to the handler.  ``KeyCodec`` is the
parse/format pair that converts between the wire identifier (a string)
and the key type of the backend; ``ObjectIdCodec`` is the only codec in
use because every backend assigns BSON ObjectIds.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Tuple, Type

from bson import ObjectId
from bson.errors import InvalidId


class StorageError(Exception):
    """Raised by adapters when the underlying store fails."""


class DecodeError(StorageError):
    """A stored document does not have the shape of a creature."""


class InvalidKeyError(ValueError):
    """A string could not be parsed into a storage key."""


class KeyCodec(Protocol):
    """Converts between wire identifiers and storage keys."""

    def parse(self, value: str) -> Any:
        ...

    def format(self, key: Any) -> str:
        ...

    def is_key(self, value: Any) -> bool:
        ...


class ObjectIdCodec:
    """Key codec for BSON ObjectIds (24 hexadecimal characters)."""

    def parse(self, value: str) -> ObjectId:
        # ObjectId() also accepts 12 raw bytes and None; identifiers on the
        # wire are always hex strings.
        if not isinstance(value, str):
            raise InvalidKeyError(f"identifier must be a string, got {type(value).__name__}")
        try:
            return ObjectId(value)
        except (InvalidId, TypeError) as exc:
            raise InvalidKeyError(f"{value!r} is not a valid ObjectId") from exc

    def format(self, key: ObjectId) -> str:
        return str(key)

    def is_key(self, value: Any) -> bool:
        return isinstance(value, ObjectId)


DOCUMENT_FIELDS = ("code", "name", "power", "description")


@dataclass
class StoredCreature:
    """Persistence shape of a creature record.

    ``id`` is ``None`` only before the record has been inserted.
    """

    id: Optional[Any]
    code: str
    name: str
    power: str
    description: str

    def to_document(self) -> Dict[str, Any]:
        """Return the document written to storage, without ``_id``."""
        return {
            "code": self.code,
            "name": self.name,
            "power": self.power,
            "description": self.description,
        }

    @classmethod
    def from_document(cls, document: Any) -> "StoredCreature":
        """Build a ``StoredCreature`` from a stored document.

        Raises ``DecodeError`` if the document is not a mapping, has no
        ``_id`` or any creature field is missing or not a string.
        """
        if not isinstance(document, dict):
            raise DecodeError(f"expected a document, got {type(document).__name__}")
        if document.get("_id") is None:
            raise DecodeError("document has no _id")
        values = {}
        for name in DOCUMENT_FIELDS:
            value = document.get(name)
            if not isinstance(value, str):
                raise DecodeError(f"field {name!r} of document {document['_id']} is not a string")
            values[name] = value
        return cls(id=document["_id"], **values)


class ScanIterator:
    """Iterator over stored documents that owns a storage cursor.

    ``release`` is called exactly once: when the documents are
    exhausted, when iteration raises, or on ``close()``, whichever comes
    first.  Unlike a generator, closing before the first ``next()`` still
    releases the cursor.  Exceptions of ``error_types`` raised by the
    underlying iterator or by ``release`` are re-raised as
    ``StorageError``.
    """

    def __init__(
        self,
        documents: Iterable[Dict[str, Any]],
        release: Callable[[], None],
        error_types: Tuple[Type[BaseException], ...] = (),
    ) -> None:
        self._documents = iter(documents)
        self._release = release
        self._error_types = error_types
        self.closed = False

    def __iter__(self) -> "ScanIterator":
        return self

    def __next__(self) -> Dict[str, Any]:
        if self.closed:
            raise StopIteration
        try:
            return next(self._documents)
        except StopIteration:
            self.close()
            raise
        except self._error_types as exc:
            self.close()
            raise StorageError(f"cursor failed: {exc}") from exc
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._release()
        except self._error_types as exc:
            raise StorageError(f"cannot release cursor: {exc}") from exc

    def __enter__(self) -> "ScanIterator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class CreatureStorage(ABC):
    """Document store holding creature records."""

    @abstractmethod
    def insert(self, document: Dict[str, Any]) -> Any:
        """Insert a document and return the key assigned by the store."""

    @abstractmethod
    def find_by_id(self, key: Any) -> Optional[Dict[str, Any]]:
        """Return the document stored under ``key`` or ``None``."""

    @abstractmethod
    def replace(self, key: Any, document: Dict[str, Any]) -> int:
        """Overwrite every field of the document stored under ``key``.

        Returns the number of documents matched, 0 if ``key`` is absent.
        """

    @abstractmethod
    def delete_by_id(self, key: Any) -> int:
        """Delete the document stored under ``key``; return the number removed."""

    @abstractmethod
    def scan_all(self) -> ScanIterator:
        """Return a lazy iterator over every stored document.

        The cursor is opened here.  Drivers that defer the query (pymongo)
        report a failure to open on the first ``next()`` instead.
        """

    def close(self) -> None:
        """Release connections held by the adapter."""
