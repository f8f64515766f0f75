from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from persistence import DocumentStore, StorageCorruptError


class FakeGenerator:
    def __init__(self, text: str = "Q1. ...") -> None:
        self.text = text
        self.calls: list[str] = []

    def generate(self, category: str) -> str:
        self.calls.append(category)
        return self.text


@pytest.fixture
def client(settings):
    import app as app_module

    return TestClient(app_module.create_app(settings, generator=FakeGenerator()))


def _quiz(**overrides):
    body = {"title": "What kind of lover are you?", "category": "love", "content": "Q1 ..."}
    body.update(overrides)
    return body


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_quiz_crud_flow(client, data_dir):
    r = client.post("/api/quizzes", json=_quiz())
    assert r.status_code == 201
    quiz = r.json()
    assert quiz["views"] == 0
    assert quiz["id"]

    r = client.get(f"/api/quizzes/{quiz['id']}")
    assert r.status_code == 200
    assert r.json() == quiz

    r = client.patch(f"/api/quizzes/{quiz['id']}", json={"title": "Renamed"})
    assert r.status_code == 200
    assert r.json()["title"] == "Renamed"

    stored = json.loads((data_dir / "quizzes.json").read_text(encoding="utf-8"))
    assert [q["title"] for q in stored] == ["Renamed"]

    r = client.delete(f"/api/quizzes/{quiz['id']}")
    assert r.json() == {"deleted": True}
    r = client.delete(f"/api/quizzes/{quiz['id']}")
    assert r.json() == {"deleted": False}

    r = client.get(f"/api/quizzes/{quiz['id']}")
    assert r.status_code == 404
    assert r.json()["id"] == quiz["id"]


def test_quiz_validation_errors(client):
    r = client.post("/api/quizzes", json={"title": "no content", "category": "love"})
    assert r.status_code == 422
    assert r.json()["fields"] == ["content"]

    quiz = client.post("/api/quizzes", json=_quiz()).json()
    r = client.patch(f"/api/quizzes/{quiz['id']}", json={"views": 1000})
    assert r.status_code == 422
    assert r.json()["fields"] == ["views"]

    r = client.post("/api/quizzes", json=_quiz(views=1_000_000))
    assert r.status_code == 422
    assert r.json()["fields"] == ["views"]
    assert client.post("/api/quizzes", json=_quiz(views=-5)).status_code == 422
    assert client.get("/api/quizzes").json()["total"] == 1


def test_quiz_listing_sort_filter_and_views(client):
    ids = {}
    for title, category in (("a", "love"), ("b", "money"), ("c", "love")):
        ids[title] = client.post("/api/quizzes", json=_quiz(title=title, category=category)).json()["id"]

    for title, views in (("a", 3), ("b", 1), ("c", 2)):
        for _ in range(views):
            r = client.post(f"/api/quizzes/{ids[title]}/views")
            assert r.status_code == 200
    assert r.json() == {"id": ids["c"], "views": 2}

    r = client.get("/api/quizzes", params={"sort": "popular"})
    assert [q["title"] for q in r.json()["items"]] == ["a", "c", "b"]

    r = client.get("/api/quizzes")
    assert [q["title"] for q in r.json()["items"]] == ["c", "b", "a"]

    r = client.get("/api/quizzes", params={"category": "love", "sort": "oldest"})
    assert [q["title"] for q in r.json()["items"]] == ["a", "c"]
    assert r.json()["total"] == 2

    r = client.get("/api/quizzes", params={"category": "love", "limit": 1})
    assert r.json()["count"] == 1
    assert r.json()["total"] == 2

    r = client.get("/api/quizzes", params={"limit": 1, "offset": 1})
    assert r.json()["count"] == 1
    assert r.json()["total"] == 3
    assert r.json()["items"][0]["title"] == "b"

    assert client.get("/api/quizzes", params={"sort": "random"}).status_code == 422
    assert client.post("/api/quizzes/missing/views").status_code == 404


def test_images_flow(client):
    r = client.post("/api/images", json={"url": "/uploads/banner.png", "title": "Banner"})
    assert r.status_code == 201
    image = r.json()

    r = client.get("/api/images")
    assert r.json()["items"] == [image]
    assert r.json()["total"] == 1
    assert client.get(f"/api/images/{image['id']}").json() == image

    assert client.post("/api/images", json={"title": "missing url"}).status_code == 422
    assert client.delete(f"/api/images/{image['id']}").json() == {"deleted": True}


def test_storage_failure_maps_to_503(client, monkeypatch):
    import json_store

    def boom(src, dst):
        raise OSError("read-only file system")

    monkeypatch.setattr(json_store.os, "replace", boom)
    r = client.post("/api/quizzes", json=_quiz())
    assert r.status_code == 503
    monkeypatch.undo()

    assert client.get("/api/quizzes").json()["count"] == 0


def test_corrupt_collection_fails_startup(settings, data_dir):
    import app as app_module

    (data_dir / "quizzes.json").write_text("[{oops", encoding="utf-8")
    with pytest.raises(StorageCorruptError):
        app_module.create_app(settings, generator=FakeGenerator())
    assert (data_dir / "quizzes.json").read_text(encoding="utf-8") == "[{oops"


def test_in_memory_persistence_setting(settings, data_dir):
    import dataclasses

    import app as app_module

    app = app_module.create_app(dataclasses.replace(settings, persist_to_disk=False), generator=FakeGenerator())
    client = TestClient(app)
    assert client.post("/api/quizzes", json=_quiz()).status_code == 201
    assert isinstance(app.state.store, DocumentStore)
    assert app.state.store.base_dir is None
    assert not (data_dir / "quizzes.json").exists()
