"""
Service layer for creature records.

``CreatureService`` implements create, read, update, delete and list
on top of an injected ``CreatureStorage``.  It converts between the
wire schema (``Creature``) and the persistence shape
(``StoredCreature``) and turns every storage failure into one of the
error categories in ``core.errors``:

* an identifier that cannot be parsed into a storage key raises
  ``InvalidArgumentError``, whether or not a record with that literal
  string exists;
* a lookup or delete that matches nothing raises ``NotFoundError``;
* storage failures and records that cannot be decoded raise
  ``InternalError``.

Nothing is retried and the service keeps no state between calls; all
state lives in the storage adapter, which is responsible for its own
concurrency.  Concurrent updates of one record are last-write-wins.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from creature_service.app.core.errors import InternalError, InvalidArgumentError, NotFoundError
from creature_service.app.schemas.creature import Creature, CreatureIn
from creature_service.app.storage.base import (
    CreatureStorage,
    DecodeError,
    InvalidKeyError,
    KeyCodec,
    ObjectIdCodec,
    ScanIterator,
    StorageError,
    StoredCreature,
)

logger = logging.getLogger(__name__)


class CreatureStream:
    """Lazy stream of creature records backed by a storage scan.

    Records are decoded one at a time as the caller iterates.  The
    first scan or decode failure closes the scan and raises
    ``InternalError``; the remaining records are not produced.  Call
    ``close()`` (or use the stream as a context manager) to stop early;
    the storage cursor is released on every exit path.
    """

    def __init__(self, documents: ScanIterator, to_record: Callable[[Any], Creature]) -> None:
        self._documents = documents
        self._to_record = to_record

    def __iter__(self) -> "CreatureStream":
        return self

    def __next__(self) -> Creature:
        try:
            document = next(self._documents)
        except StorageError as exc:
            self.close()
            logger.error("Creature scan failed: %s", exc)
            raise InternalError(f"Unknown internal error: {exc}") from exc
        try:
            return self._to_record(document)
        except DecodeError as exc:
            self.close()
            logger.error("Cannot decode creature during scan: %s", exc)
            raise InternalError(f"Error while decoding data: {exc}") from exc

    def close(self) -> None:
        """Release the scan.  A failure to release is logged, not raised."""
        try:
            self._documents.close()
        except StorageError as exc:
            logger.error("Cannot release creature scan: %s", exc)

    @property
    def closed(self) -> bool:
        return self._documents.closed

    def __enter__(self) -> "CreatureStream":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class CreatureService:
    """CRUD operations on creature records."""

    def __init__(self, storage: CreatureStorage, keys: Optional[KeyCodec] = None) -> None:
        self.storage = storage
        self.keys = keys or ObjectIdCodec()

    def _parse_id(self, creature_id: str) -> Any:
        try:
            return self.keys.parse(creature_id)
        except InvalidKeyError as exc:
            logger.warning("Rejected creature id %r: %s", creature_id, exc)
            raise InvalidArgumentError("Cannot parse ID") from exc

    def _to_record(self, document: Dict[str, Any]) -> Creature:
        """Decode a stored document into the wire schema.

        Raises ``DecodeError`` if the document is malformed or its
        ``_id`` is not a key of the configured codec.
        """
        stored = StoredCreature.from_document(document)
        if not self.keys.is_key(stored.id):
            raise DecodeError(f"document id {stored.id!r} is not a valid key")
        return Creature(
            id=self.keys.format(stored.id),
            code=stored.code,
            name=stored.name,
            power=stored.power,
            description=stored.description,
        )

    def _find(self, key: Any) -> Optional[Dict[str, Any]]:
        try:
            return self.storage.find_by_id(key)
        except StorageError as exc:
            logger.error("Lookup of creature %s failed: %s", key, exc)
            raise InternalError(f"Internal error: {exc}") from exc

    def create_creature(self, data: CreatureIn) -> Creature:
        """Insert a new creature and return it with its assigned id.

        Any ``id`` present on ``data`` is ignored.
        """
        stored = StoredCreature(
            id=None,
            code=data.code,
            name=data.name,
            power=data.power,
            description=data.description,
        )
        try:
            key = self.storage.insert(stored.to_document())
        except StorageError as exc:
            logger.error("Insert of creature failed: %s", exc)
            raise InternalError(f"Internal error: {exc}") from exc
        if not self.keys.is_key(key):
            logger.error("Storage returned an id of unexpected type: %r", key)
            raise InternalError("Cannot convert to OID")
        creature_id = self.keys.format(key)
        logger.info("Created creature %s", creature_id)
        return Creature(id=creature_id, **stored.to_document())

    def get_creature(self, creature_id: str) -> Creature:
        """Return the creature stored under ``creature_id``."""
        key = self._parse_id(creature_id)
        document = self._find(key)
        if document is None:
            raise NotFoundError(f"Cannot find creature with specified ID: {creature_id}")
        try:
            return self._to_record(document)
        except DecodeError as exc:
            logger.error("Cannot decode creature %s: %s", creature_id, exc)
            raise InternalError(f"Error while decoding data: {exc}") from exc

    def update_creature(self, creature: Creature) -> Creature:
        """Replace every field of an existing creature except its id.

        The existing record is fetched only to confirm that it exists;
        none of its fields are merged into the result.  A record deleted
        before the replace lands also raises ``NotFoundError``.
        """
        key = self._parse_id(creature.id)
        if self._find(key) is None:
            raise NotFoundError(f"Cannot find creature with specified ID: {creature.id}")
        stored = StoredCreature(
            id=key,
            code=creature.code,
            name=creature.name,
            power=creature.power,
            description=creature.description,
        )
        try:
            matched = self.storage.replace(key, stored.to_document())
        except StorageError as exc:
            logger.error("Replace of creature %s failed: %s", creature.id, exc)
            raise InternalError(f"Cannot update object in storage: {exc}") from exc
        if matched == 0:
            # Deleted between the existence check and the replace.
            raise NotFoundError(f"Cannot find creature with specified ID: {creature.id}")
        logger.info("Updated creature %s", creature.id)
        return Creature(id=self.keys.format(key), **stored.to_document())

    def delete_creature(self, creature_id: str) -> str:
        """Delete a creature and return the identifier that was removed."""
        key = self._parse_id(creature_id)
        try:
            deleted = self.storage.delete_by_id(key)
        except StorageError as exc:
            logger.error("Delete of creature %s failed: %s", creature_id, exc)
            raise InternalError(f"Cannot delete object in storage: {exc}") from exc
        if deleted == 0:
            raise NotFoundError(f"Cannot find creature with specified ID: {creature_id}")
        logger.info("Deleted creature %s", creature_id)
        return creature_id

    def list_creatures(self) -> CreatureStream:
        """Open a scan over all creatures and return it as a lazy stream.

        Records come in storage order, unsorted and unfiltered.  A scan
        that cannot be opened raises ``InternalError`` here, before the
        stream is returned.
        """
        try:
            documents = self.storage.scan_all()
        except StorageError as exc:
            logger.error("Cannot open creature scan: %s", exc)
            raise InternalError(f"Unknown internal error: {exc}") from exc
        return CreatureStream(documents, self._to_record)
