import pytest

from creature_service.app.schemas.creature import CreatureIn
from creature_service.app.services.creature_service import CreatureService
from creature_service.app.storage import InMemoryCreatureStorage, StorageError


class FailingStorage(InMemoryCreatureStorage):
    """In-memory storage whose operations can be made to fail one by one."""

    def __init__(self, fail=()):
        super().__init__()
        self.fail = set(fail)

    def _check(self, name):
        if name in self.fail:
            raise StorageError(f"{name} failed")

    def insert(self, document):
        self._check("insert")
        return super().insert(document)

    def find_by_id(self, key):
        self._check("find_by_id")
        return super().find_by_id(key)

    def replace(self, key, document):
        self._check("replace")
        return super().replace(key, document)

    def delete_by_id(self, key):
        self._check("delete_by_id")
        return super().delete_by_id(key)

    def scan_all(self):
        self._check("scan_all")
        return super().scan_all()


@pytest.fixture
def storage():
    return InMemoryCreatureStorage()


@pytest.fixture
def service(storage):
    return CreatureService(storage)


@pytest.fixture
def pikachu():
    return CreatureIn(code="Poke01", name="Pikachu", power="Fire", description="Fluffy")


@pytest.fixture
def make_failing_storage():
    """Return a factory: ``make_failing_storage(fail={"insert"})``."""
    return FailingStorage
