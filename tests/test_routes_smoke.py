"""Smoke tests for API routes."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from word_practice.api.routes import router
from word_practice.storage import learner_profile as lp_storage
from word_practice.storage.library_store import LibraryStore
from word_practice.storage.word_store import WordStore


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.app_secret = None
    settings.speech_recognition_enabled = True
    return settings


@pytest.fixture
def store(tmp_path):
    return WordStore(tmp_path / "data")


@pytest.fixture
def library(tmp_path):
    return LibraryStore(tmp_path / "data")


@pytest.fixture
def client(mock_settings, store, library, tmp_path, monkeypatch):
    def _get_profile_path(learner_id: str):
        profiles = tmp_path / "learners"
        profiles.mkdir(parents=True, exist_ok=True)
        return profiles / f"{learner_id}.json"

    monkeypatch.setattr(lp_storage, "get_profile_path", _get_profile_path)

    app = FastAPI()
    app.include_router(router)
    with (
        patch("word_practice.api.routes.get_settings", return_value=mock_settings),
        patch("word_practice.api.routes.get_word_store", return_value=store),
        patch("word_practice.api.routes.get_library_store", return_value=library),
    ):
        with TestClient(app) as c:
            yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_capabilities(self, client):
        response = client.get("/api/capabilities")
        assert response.json() == {"speech_recognition": True}


class TestEvaluate:
    def test_match(self, client):
        response = client.post("/api/evaluate", json={"spoken": "Kat!", "target": "cat"})
        assert response.status_code == 200
        assert response.json()["is_match"] is True

    def test_homophone(self, client):
        response = client.post("/api/evaluate", json={"spoken": "knight", "target": "night"})
        assert response.json()["is_match"] is True

    def test_miss(self, client):
        response = client.post("/api/evaluate", json={"spoken": "dog", "target": "cat"})
        assert response.json()["is_match"] is False


class TestLearners:
    def test_unknown_learner_gets_defaults(self, client):
        response = client.get("/api/learners/kid-1")
        assert response.status_code == 200
        data = response.json()
        assert data["learner_id"] == "kid-1"
        assert data["mastery_threshold"] == 4
        assert data["timer_seconds"] == 7

    def test_update_learner(self, client):
        response = client.put("/api/learners/kid-1", json={"mastery_threshold": 2, "name": "Sam"})
        assert response.status_code == 200
        assert response.json()["mastery_threshold"] == 2

        data = client.get("/api/learners/kid-1").json()
        assert data["name"] == "Sam"
        assert data["timer_seconds"] == 7

    def test_update_rejects_zero_threshold(self, client):
        response = client.put("/api/learners/kid-1", json={"mastery_threshold": 0})
        assert response.status_code == 422

    def test_invalid_learner_id(self, client):
        response = client.get("/api/learners/bad.id")
        assert response.status_code == 400

    def test_delete_unknown_learner(self, client):
        response = client.delete("/api/learners/ghost")
        assert response.status_code == 404

    def test_delete_learner_removes_words(self, client, store):
        store.add_words("kid-1", ["cat", "dog"])
        response = client.delete("/api/learners/kid-1")
        assert response.status_code == 200
        assert response.json()["deleted_words"] == 2
        assert store.list_words("kid-1") == []


class TestWords:
    def test_add_word_list(self, client):
        response = client.post("/api/learners/kid-1/words", json={"words": ["Cat", "dog", "cat"]})
        assert response.status_code == 200
        assert response.json() == {"created": ["cat", "dog"], "candidates": 2}

    def test_add_from_passage(self, client):
        response = client.post(
            "/api/learners/kid-1/words", json={"text": "The cat sat on the mat."}
        )
        data = response.json()
        assert data["created"] == ["the", "cat", "sat", "on", "mat"]

    def test_add_requires_input(self, client):
        response = client.post("/api/learners/kid-1/words", json={})
        assert response.status_code == 422

    def test_list_and_filter(self, client, store):
        created = store.add_words("kid-1", ["cat", "dog"])
        store.master_word(created[0].id)

        all_words = client.get("/api/learners/kid-1/words").json()
        assert len(all_words) == 2

        mastered = client.get("/api/learners/kid-1/words", params={"status": "mastered"}).json()
        assert [w["text"] for w in mastered] == ["cat"]

    def test_stats(self, client, store):
        store.add_words("kid-1", ["cat", "dog"])
        data = client.get("/api/learners/kid-1/stats").json()
        assert data["counts"] == {"new": 2, "learning": 0, "mastered": 0}
        assert data["total"] == 2

    def test_master_word(self, client, store):
        created = store.add_words("kid-1", ["cat"])
        response = client.post(f"/api/words/{created[0].id}/master")
        assert response.status_code == 200
        assert response.json()["status"] == "mastered"

    def test_master_unknown_word(self, client):
        response = client.post("/api/words/missing/master")
        assert response.status_code == 404


class TestPresets:
    def test_list_in_display_order(self, client):
        data = client.get("/api/presets").json()
        assert len(data) == 13
        assert data[0]["id"] == "alphabet"
        assert [p["sort_order"] for p in data] == list(range(1, 14))

    def test_filter_by_category(self, client):
        data = client.get("/api/presets", params={"category": "cvc"}).json()
        assert len(data) == 5
        assert all(p["category"] == "cvc" for p in data)

    def test_apply_preset(self, client, store):
        response = client.post("/api/learners/kid-1/presets/colors")
        assert response.status_code == 200
        assert response.json()["candidates"] == 13
        assert len(store.list_words("kid-1")) == 13

    def test_unknown_preset(self, client):
        response = client.post("/api/learners/kid-1/presets/nope")
        assert response.status_code == 404


class TestBooks:
    def test_create_and_list(self, client):
        response = client.post(
            "/api/books", json={"title": " Hop on Pop ", "text": "Hop on pop. Pop on hop."}
        )
        assert response.status_code == 201
        book = response.json()
        assert book["title"] == "Hop on Pop"
        assert book["words"] == ["hop", "on", "pop"]

        books = client.get("/api/books").json()
        assert [b["id"] for b in books] == [book["id"]]

    def test_create_requires_words(self, client):
        response = client.post("/api/books", json={"title": "Empty"})
        assert response.status_code == 422

    def test_add_to_learner_and_readiness(self, client, store):
        book = client.post("/api/books", json={"title": "Pets", "words": ["cat", "dog"]}).json()

        response = client.post(f"/api/learners/kid-1/books/{book['id']}")
        assert response.status_code == 200
        assert response.json()["readiness_percent"] == 0
        assert {w.text for w in store.list_words("kid-1")} == {"cat", "dog"}

        for word in store.list_words("kid-1"):
            store.master_word(word.id)
        progress = client.get("/api/learners/kid-1/books").json()
        assert progress[0]["readiness_percent"] == 100
        assert progress[0]["is_ready"] is True

        ready = client.get("/api/learners/kid-1/books", params={"band": "ready"}).json()
        assert len(ready) == 1
        almost = client.get("/api/learners/kid-1/books", params={"band": "almost"}).json()
        assert almost == []

    def test_add_unknown_book(self, client):
        response = client.post("/api/learners/kid-1/books/missing")
        assert response.status_code == 404

    def test_delete_book(self, client, library):
        book = client.post("/api/books", json={"title": "Pets", "words": ["cat"]}).json()
        client.post(f"/api/learners/kid-1/books/{book['id']}")

        assert client.delete(f"/api/books/{book['id']}").status_code == 200
        assert library.list_progress("kid-1") == []
        assert client.delete(f"/api/books/{book['id']}").status_code == 404


class TestReadingSessions:
    def test_record_session(self, client, store):
        store.add_words("kid-1", ["cat"])
        response = client.post(
            "/api/learners/kid-1/sessions",
            json={"text": "The cat sat.", "book_title": "Cat Tales"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["book_title"] == "Cat Tales"
        assert data["new_words_count"] == 2
        assert data["total_words_count"] == 3

        sessions = client.get("/api/learners/kid-1/sessions").json()
        assert [s["id"] for s in sessions] == [data["id"]]

    def test_empty_text_rejected(self, client):
        response = client.post("/api/learners/kid-1/sessions", json={"text": ""})
        assert response.status_code == 422

    def test_delete_learner_clears_sessions(self, client, library):
        client.post("/api/learners/kid-1/sessions", json={"text": "The cat sat."})
        client.delete("/api/learners/kid-1")
        assert library.list_sessions("kid-1") == []
