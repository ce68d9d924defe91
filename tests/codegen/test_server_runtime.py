"""Import the generated FastAPI server and drive it over HTTP."""

import importlib
import sys

import pytest

from airengine.codegen import transpile

pytest.importorskip("sqlalchemy")

testclient = pytest.importorskip("fastapi.testclient")

pytestmark = pytest.mark.integration


def _drop_generated_modules():
    for name in list(sys.modules):
        if name == "server" or name.startswith("server."):
            del sys.modules[name]


@pytest.fixture
def load_server(tmp_path, monkeypatch):
    """Write a generated server under ``tmp_path`` and import ``server.main``."""

    def load(source):
        for item in transpile(source, target="server").files:
            path = tmp_path / item.path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(item.content, encoding="utf-8")
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
        monkeypatch.setenv("JWT_SECRET", "test-secret")
        monkeypatch.syspath_prepend(str(tmp_path))
        _drop_generated_modules()
        return importlib.import_module("server.main")

    yield load
    _drop_generated_modules()


def test_health(load_server, minimal_crud_source):
    main = load_server(minimal_crud_source)
    with testclient.TestClient(main.app) as client:
        response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "t"}


def test_crud_round_trip(load_server, minimal_crud_source):
    main = load_server(minimal_crud_source)
    with testclient.TestClient(main.app) as client:
        created = client.post("/api/items", json={"name": "first"})
        assert created.status_code == 201
        item = created.json()
        assert item["name"] == "first"

        client.post("/api/items", json={"name": "second"})
        listing = client.get("/api/items", params={"limit": 1})
        assert listing.status_code == 200
        assert listing.headers["X-Total-Count"] == "2"
        assert len(listing.json()) == 1

        searched = client.get("/api/items", params={"search": "sec"})
        assert [row["name"] for row in searched.json()] == ["second"]

        updated = client.put(f"/api/items/{item['id']}", json={"name": "renamed"})
        assert updated.status_code == 200
        assert updated.json()["name"] == "renamed"

        assert client.delete(f"/api/items/{item['id']}").status_code == 204
        assert client.put(f"/api/items/{item['id']}", json={"name": "x"}).status_code == 404


def test_create_validates_payload(load_server, minimal_crud_source):
    main = load_server(minimal_crud_source)
    with testclient.TestClient(main.app) as client:
        assert client.post("/api/items", json={}).status_code == 422


def test_stub_and_aggregate(load_server, fullstack_source):
    main = load_server(fullstack_source)
    with testclient.TestClient(main.app) as client:
        client.post("/api/projects", json={"name": "alpha", "status": "active"})
        client.post("/api/projects", json={"name": "beta", "status": "archived"})
        stats = client.get("/api/stats")
        assert stats.json() == {"totalProjects": 2, "active": 1, "archived": 1}
        assert client.post("/api/reports/export").status_code == 501


def test_nested_collection(load_server, fullstack_source):
    main = load_server(fullstack_source)
    with testclient.TestClient(main.app) as client:
        project = client.post("/api/projects", json={"name": "alpha", "status": "active"}).json()
        created = client.post(f"/api/projects/{project['id']}/tasks", json={"title": "write docs"})
        assert created.status_code == 201
        assert created.json()["project_id"] == project["id"]
        tasks = client.get(f"/api/projects/{project['id']}/tasks").json()
        assert [task["title"] for task in tasks] == ["write docs"]
        assert tasks[0]["done"] is False


def test_auth_flow(load_server, auth_source):
    main = load_server(auth_source)
    with testclient.TestClient(main.app) as client:
        assert client.get("/api/contacts").status_code == 401

        registered = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "s3cret", "name": "Ada"},
        )
        assert registered.status_code == 201
        body = registered.json()
        assert body["user"]["email"] == "ada@example.com"
        assert "password" not in body["user"]

        duplicate = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "other", "name": "Ada"},
        )
        assert duplicate.status_code == 409

        bad_login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong"})
        assert bad_login.status_code == 401

        login = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "s3cret"})
        assert login.status_code == 200
        headers = {"Authorization": f"Bearer {login.json()['token']}"}

        contact = client.post(
            "/api/contacts",
            json={"name": "Grace", "user_id": body["user"]["id"]},
            headers=headers,
        )
        assert contact.status_code == 201
        assert client.get("/api/contacts", headers=headers).json()[0]["name"] == "Grace"


def test_seed_links_children_to_parents(load_server, fullstack_source):
    load_server(fullstack_source)
    seed = importlib.import_module("server.seed")
    assert seed.seed() == 6
    models = importlib.import_module("server.models")
    database = importlib.import_module("server.database")
    with database.SessionLocal() as session:
        project_ids = {project.id for project in session.query(models.Project)}
        assert {task.project_id for task in session.query(models.Task)} <= project_ids


def test_nested_item_routes(load_server, nested_crud_source):
    main = load_server(nested_crud_source)
    with testclient.TestClient(main.app) as client:
        first = client.post("/api/projects", json={"name": "alpha"}).json()
        second = client.post("/api/projects", json={"name": "beta"}).json()
        task = client.post(f"/api/projects/{first['id']}/tasks", json={"title": "plan"}).json()

        updated = client.put(f"/api/projects/{first['id']}/tasks/{task['id']}", json={"title": "ship"})
        assert updated.status_code == 200
        assert updated.json()["title"] == "ship"

        wrong_parent = f"/api/projects/{second['id']}/tasks/{task['id']}"
        assert client.put(wrong_parent, json={"title": "x"}).status_code == 404
        assert client.delete(wrong_parent).status_code == 404

        assert client.delete(f"/api/projects/{first['id']}/tasks/{task['id']}").status_code == 204
        assert client.get(f"/api/projects/{first['id']}/tasks").json() == []
