import json

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

import requests
from bson import ObjectId
from fastapi.testclient import TestClient

import demo_client
from creature_service.app.core.config import Settings
from creature_service.app.main import create_app
from creature_service_api import CreatureAPIError, CreatureServiceAPI


class DummyResponse:
    """Just enough of ``requests.Response`` for the client."""

    def __init__(self, status_code, content, headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.closed = False

    @property
    def text(self):
        return self.content.decode("utf-8")

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def iter_lines(self, decode_unicode=False):
        for line in self.text.splitlines():
            yield line if decode_unicode else line.encode("utf-8")

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class AppSession:
    """Routes ``requests``-style calls into a FastAPI ``TestClient``."""

    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, json=None, timeout=None, stream=False):
        self.calls.append((method, url))
        resp = self.test_client.request(method, url, json=json)
        return DummyResponse(resp.status_code, resp.content, dict(resp.headers))


class BrokenSession:
    def request(self, *args, **kwargs):
        raise requests.ConnectionError("connection refused")


@pytest.fixture
def api(storage):
    app = create_app(settings=Settings(), storage=storage)
    with TestClient(app) as test_client:
        yield CreatureServiceAPI(base_url="http://testserver/", session=AppSession(test_client))


def test_client_crud_round(api):
    creature, error = api.create_creature("Poke01", "Pikachu", "Fire", "Fluffy")
    assert error is None
    creature_id = creature["id"]

    read, error = api.get_creature(creature_id)
    assert error is None
    assert read == creature

    updated, error = api.update_creature(creature_id, "Poke01", "Pikachu", "Fire Fire Fire", "Fluffy")
    assert error is None
    assert updated["power"] == "Fire Fire Fire"

    deleted, error = api.delete_creature(creature_id)
    assert (deleted, error) == (creature_id, None)

    read, error = api.get_creature(creature_id)
    assert read is None
    assert error["status_code"] == 404
    assert error["code"] == "not_found"


def test_client_reports_invalid_argument(api):
    data, error = api.delete_creature("not-an-id")
    assert data is None
    assert error["status_code"] == 400
    assert error["code"] == "invalid_argument"


def test_client_streams_creatures(api):
    ids = {api.create_creature(f"C{i}", "n", "p", "d")[0]["id"] for i in range(3)}
    assert {creature["id"] for creature in api.stream_creatures()} == ids
    creatures, error = api.list_creatures()
    assert error is None
    assert len(creatures) == 3


def test_client_stream_raises_on_in_stream_error(api, storage):
    api.create_creature("A", "n", "p", "d")
    storage.put_raw(ObjectId(), {"broken": True})
    stream = api.stream_creatures()
    next(stream)
    with pytest.raises(CreatureAPIError) as excinfo:
        next(stream)
    assert excinfo.value.code == "internal"

    creatures, error = api.list_creatures()
    assert creatures == []
    assert error["code"] == "internal"


def test_client_transport_failure():
    api = CreatureServiceAPI(base_url="http://localhost:1", session=BrokenSession())
    data, error = api.get_creature(str(ObjectId()))
    assert data is None
    assert error["status_code"] is None
    assert "connection refused" in error["message"]
    with pytest.raises(CreatureAPIError):
        list(api.stream_creatures())


def test_demo_scenario_runs_every_operation(api, storage):
    assert demo_client.run_demo(api) == 0
    methods = [method for method, _ in api.session.calls]
    assert methods == ["POST", "GET", "PUT", "DELETE", "GET"]
    assert len(storage) == 0
