import asyncio
import json

import pytest

pytest.importorskip("fastapi")
httpx = pytest.importorskip("httpx")

from bson import ObjectId
from fastapi.testclient import TestClient

from creature_service.app.core.config import Settings
from creature_service.app.main import create_app
from creature_service.app.storage import InMemoryCreatureStorage, SQLiteCreatureStorage


PIKACHU = {"code": "Poke01", "name": "Pikachu", "power": "Fire", "description": "Fluffy"}


@pytest.fixture
def client(storage):
    app = create_app(settings=Settings(), storage=storage)
    with TestClient(app) as test_client:
        yield test_client


def _create(client, **fields):
    resp = client.post("/api/v1/creatures/", json={"creature": {**PIKACHU, **fields}})
    assert resp.status_code == 201
    return resp.json()["creature"]


def _lines(resp):
    return [json.loads(line) for line in resp.text.splitlines() if line]


def test_create_returns_record_with_id(client):
    creature = _create(client)
    assert ObjectId.is_valid(creature["id"])
    assert {k: creature[k] for k in PIKACHU} == PIKACHU


def test_read_returns_created_record(client):
    creature = _create(client)
    resp = client.get(f"/api/v1/creatures/{creature['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"creature": creature}


def test_read_malformed_id_is_400(client):
    _create(client)
    resp = client.get("/api/v1/creatures/Poke01")
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_argument"


def test_read_missing_id_is_404(client):
    resp = client.get(f"/api/v1/creatures/{ObjectId()}")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_update_uses_path_id_and_replaces_fields(client):
    creature = _create(client)
    resp = client.put(
        f"/api/v1/creatures/{creature['id']}",
        json={"creature": {**PIKACHU, "power": "Fire Fire Fire"}},
    )
    assert resp.status_code == 200
    assert resp.json()["creature"] == {**creature, "power": "Fire Fire Fire"}


def test_update_errors(client):
    assert client.put("/api/v1/creatures/nope", json={"creature": PIKACHU}).status_code == 400
    resp = client.put(f"/api/v1/creatures/{ObjectId()}", json={"creature": PIKACHU})
    assert resp.status_code == 404


def test_delete_returns_id_then_404(client):
    creature = _create(client)
    resp = client.delete(f"/api/v1/creatures/{creature['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"id": creature["id"]}
    assert client.get(f"/api/v1/creatures/{creature['id']}").status_code == 404
    assert client.delete(f"/api/v1/creatures/{creature['id']}").status_code == 404
    assert client.delete("/api/v1/creatures/123").status_code == 400


def test_list_empty_stream(client):
    resp = client.get("/api/v1/creatures/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")
    assert resp.text == ""


def test_list_streams_every_record(client, storage):
    created = [_create(client, code=f"C{i}") for i in range(3)]
    resp = client.get("/api/v1/creatures/")
    items = _lines(resp)
    assert sorted((item["creature"] for item in items), key=lambda c: c["id"]) == sorted(
        created, key=lambda c: c["id"]
    )
    assert storage.open_scans == 0


def test_list_reports_decode_failure_in_stream(client, storage):
    first = _create(client, code="A")
    storage.put_raw(ObjectId(), {"code": "broken"})
    _create(client, code="B")

    resp = client.get("/api/v1/creatures/")
    assert resp.status_code == 200
    items = _lines(resp)
    assert items[0] == {"creature": first}
    assert items[1]["error"]["code"] == "internal"
    assert len(items) == 2
    assert storage.open_scans == 0


def test_list_streams_sqlite_to_concurrent_clients(tmp_path):
    storage = SQLiteCreatureStorage(str(tmp_path / "creatures.db"))
    ids = {str(storage.insert({**PIKACHU, "code": f"C{i}"})) for i in range(50)}
    app = create_app(settings=Settings(), storage=storage)

    async def fetch_lists():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
            return await asyncio.gather(*(http.get("/api/v1/creatures/") for _ in range(20)))

    for resp in asyncio.run(fetch_lists()):
        assert resp.status_code == 200
        items = _lines(resp)
        assert [item for item in items if "error" in item] == []
        assert {item["creature"]["id"] for item in items} == ids


def test_list_releases_scan_when_client_disconnects(storage):
    for i in range(20):
        storage.insert({**PIKACHU, "code": f"C{i}"})
    app = create_app(settings=Settings(), storage=storage)
    chunks = []

    async def list_then_hang_up():
        hung_up = asyncio.Event()
        requested = False

        async def receive():
            nonlocal requested
            if not requested:
                requested = True
                return {"type": "http.request", "body": b"", "more_body": False}
            await hung_up.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            if message["type"] == "http.response.body" and message.get("body"):
                chunks.append(message["body"])
                hung_up.set()
                # The peer is gone, so this write never completes.
                await asyncio.Event().wait()

        scope = {
            "type": "http",
            "asgi": {"version": "3.0", "spec_version": "2.3"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": "/api/v1/creatures/",
            "raw_path": b"/api/v1/creatures/",
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"testserver")],
            "client": ("testclient", 50000),
            "server": ("testserver", 80),
        }
        await app(scope, receive, send)

    asyncio.run(list_then_hang_up())
    assert len(chunks) == 1
    assert "creature" in json.loads(chunks[0])
    assert storage.open_scans == 0


def test_list_scan_failure_is_500(make_failing_storage):
    app = create_app(settings=Settings(), storage=make_failing_storage(fail={"scan_all"}))
    with TestClient(app) as client:
        resp = client.get("/api/v1/creatures/")
    assert resp.status_code == 500
    assert resp.json()["code"] == "internal"


def test_create_storage_failure_is_500(make_failing_storage):
    app = create_app(settings=Settings(), storage=make_failing_storage(fail={"insert"}))
    with TestClient(app) as client:
        resp = client.post("/api/v1/creatures/", json={"creature": PIKACHU})
    assert resp.status_code == 500
    assert resp.json()["code"] == "internal"


def test_info_reports_storage(client):
    resp = client.get("/api/v1/info/")
    assert resp.status_code == 200
    assert resp.json()["storage"] == "InMemoryCreatureStorage"


def test_app_builds_and_closes_configured_storage(monkeypatch):
    closed = []

    class ClosingStorage(InMemoryCreatureStorage):
        def close(self):
            closed.append(True)

    monkeypatch.setattr(
        "creature_service.app.main.create_storage", lambda settings: ClosingStorage()
    )
    app = create_app(settings=Settings(storage_backend="memory"))
    with TestClient(app) as client:
        assert client.get("/api/v1/info/").json()["storage"] == "ClosingStorage"
    assert closed == [True]
