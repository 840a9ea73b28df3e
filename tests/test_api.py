from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from todo_app.config import AppConfig
from todo_app.main import create_app


def _config(data_file: Path, environment: str = "test") -> AppConfig:
    return AppConfig(data_file=data_file, environment=environment)


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "tasks.json"


@pytest.fixture
def client(data_file):
    with TestClient(create_app(_config(data_file))) as test_client:
        yield test_client


def _create(client, **body):
    response = client.post("/api/todos", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_crud_lifecycle(client, data_file):
    created = _create(client, title="Write tests", priority="high", tags=["dev"])
    assert created["completed"] is False
    assert created["completedAt"] is None
    assert data_file.exists()

    listed = client.get("/api/todos")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [created["id"]]

    updated = client.put(f"/api/todos/{created['id']}", json={"completed": True})
    assert updated.status_code == 200
    assert updated.json()["completedAt"] is not None

    deleted = client.delete(f"/api/todos/{created['id']}")
    assert deleted.status_code == 204
    assert client.get("/api/todos").json() == []


def test_list_applies_query_filters(client):
    _create(client, title="Alpha", priority="high", tags=["Urgent"])
    _create(client, title="Beta", priority="low", tags=["later"])

    by_tag = client.get("/api/todos", params={"tags": "urg"}).json()
    assert [item["title"] for item in by_tag] == ["Alpha"]

    by_priority = client.get("/api/todos", params={"priority": "low"}).json()
    assert [item["title"] for item in by_priority] == ["Beta"]

    by_search = client.get("/api/todos", params={"search": "ALP"}).json()
    assert [item["title"] for item in by_search] == ["Alpha"]

    repeated = client.get("/api/todos?tags=urg&tags=lat").json()
    assert len(repeated) == 2


def test_list_rejects_long_search(client):
    response = client.get("/api/todos", params={"search": "x" * 1001})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_validation_errors_map_to_400(client):
    response = client.post("/api/todos", json={"title": "", "priority": "urgent"})

    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert [item["field"] for item in body["error"]["details"]["errors"]] == [
        "title",
        "priority",
    ]


def test_create_requires_object_body(client):
    for payload in ({}, [], "title"):
        response = client.post("/api/todos", json=payload)
        assert response.status_code == 400
        assert response.json()["error"]["details"]["errors"][0]["field"] == "body"


def test_update_and_delete_unknown_id_map_to_404(client):
    assert client.put("/api/todos/missing", json={"title": "x"}).status_code == 404
    response = client.delete("/api/todos/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_update_without_fields_is_400(client):
    created = _create(client, title="x")

    response = client.put(f"/api/todos/{created['id']}", json={})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "No valid fields to update"


def test_archive_and_tags_endpoints(client):
    first = _create(client, title="one", tags=["b", "a"])
    _create(client, title="two", tags=["c"])
    client.put(f"/api/todos/{first['id']}", json={"completed": True})

    archive = client.get("/api/todos/archive").json()
    assert len(archive) == 1
    assert archive[0]["count"] == 1
    assert archive[0]["tasks"][0]["id"] == first["id"]

    assert client.get("/api/todos/tags").json() == ["a", "b", "c"]


def test_corrupt_storage_maps_to_500_with_cause_outside_production(data_file):
    data_file.parent.mkdir(parents=True)
    data_file.write_text("{broken", encoding="utf-8")

    with TestClient(create_app(_config(data_file, "development"))) as client:
        response = client.get("/api/todos")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "STORAGE_ERROR"
    assert "cause" in error["details"]


def test_corrupt_storage_hides_cause_in_production(data_file):
    data_file.parent.mkdir(parents=True)
    data_file.write_text('{"not": "a list"}', encoding="utf-8")

    with TestClient(create_app(_config(data_file, "production"))) as client:
        response = client.get("/api/todos")

    assert response.status_code == 500
    assert response.json()["error"] == {
        "code": "STORAGE_ERROR",
        "message": "Data storage operation failed",
        "details": {},
    }

