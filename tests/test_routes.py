# tests/test_routes.py

import pytest
from bson import ObjectId
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kickstart.api import deps
from kickstart.api.routes import routers
from kickstart.core import security
from kickstart.core.exception_handlers import register_exception_handlers
from kickstart.services.study_session.session_registry import SessionRegistry

from conftest import make_task

LINK_FORM = {
    "title": "OS Basics",
    "description": "Learn OS fundamentals",
    "intent_text": "I want to pass my exam",
    "content_kind": "link",
    "content_link": "https://example.com/os",
}


def make_app(owner_id, task_store, blob_store, session_logs, clock, authenticated=True):
    app = FastAPI()
    register_exception_handlers(app)
    for r in routers:
        app.include_router(r)

    registry = SessionRegistry()
    if authenticated:
        app.dependency_overrides[security.get_current_user] = lambda: security.AuthUser(id=owner_id)
    app.dependency_overrides[deps.get_task_store] = lambda: task_store
    app.dependency_overrides[deps.get_blob_store] = lambda: blob_store
    app.dependency_overrides[deps.get_session_log_store] = lambda: session_logs
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_session_registry] = lambda: registry
    return app


@pytest.fixture
def client(owner_id, task_store, blob_store, session_logs, clock):
    return TestClient(make_app(owner_id, task_store, blob_store, session_logs, clock))


class TestTaskRoutes:
    def test_create_link_task(self, client, task_store):
        r = client.post("/my/tasks", data=LINK_FORM)
        assert r.status_code == 201
        body = r.json()
        assert body["title"] == "OS Basics"
        assert body["completed_topics"] == 0
        assert body["total_topics"] == 10
        assert body["progress"]["percent"] == 0
        assert body["due_today"] is True
        assert ObjectId(body["id"]) in task_store.tasks

    def test_create_file_task(self, client, blob_store):
        form = {**LINK_FORM, "content_kind": "file", "content_link": "", "intent_text": ""}
        files = {
            "intent_audio": ("intent.wav", b"RIFF....WAVE", "audio/wav"),
            "content_file": ("chapter.pdf", b"%PDF-1.4", "application/pdf"),
        }
        r = client.post("/my/tasks", data={**form, "intent_duration_s": "4.5"}, files=files)

        assert r.status_code == 201, r.json()
        body = r.json()
        assert body["content_kind"] == "file"
        assert body["content_filename"] == "chapter.pdf"
        assert body["content_url"].startswith("https://blobs.test/content-files/content_")
        assert body["intent_audio_url"].startswith("https://blobs.test/audio-recordings/intent_")
        assert len(blob_store.objects) == 2

    def test_invalid_draft_envelope(self, client, blob_store):
        r = client.post("/my/tasks", data={**LINK_FORM, "title": " ", "content_link": "not a url"})
        assert r.status_code == 422
        body = r.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert len(body["error"]["details"]) == 2
        assert blob_store.calls == []

    def test_upload_failure_envelope(self, client, blob_store, task_store):
        blob_store.fail_buckets.add("content-files")
        files = {"content_file": ("chapter.pdf", b"%PDF-1.4", "application/pdf")}
        r = client.post("/my/tasks", data={**LINK_FORM, "content_kind": "file", "content_link": ""}, files=files)

        assert r.status_code == 502
        error = r.json()["error"]
        assert error["code"] == "UPLOAD_FAILED"
        assert error["stage"] == "content"
        assert error["retryable"] is True
        assert task_store.tasks == {}

    def test_list_and_get(self, client, task_store, owner_id):
        task = make_task(owner_id, completed_topics=7)
        foreign = make_task(ObjectId())
        task_store.tasks[task.id] = task
        task_store.tasks[foreign.id] = foreign

        r = client.get("/my/tasks")
        assert r.status_code == 200
        assert [t["id"] for t in r.json()["tasks"]] == [str(task.id)]

        r = client.get(f"/my/tasks/{task.id}")
        assert r.status_code == 200
        assert r.json()["progress"]["percent"] == 70

        r = client.get(f"/my/tasks/{foreign.id}")
        assert r.status_code == 404
        assert r.json()["error"]["code"] == "NOT_FOUND"

    def test_invalid_task_id(self, client):
        r = client.get("/my/tasks/not-an-id")
        assert r.status_code == 422

    def test_dashboard(self, client, task_store, owner_id):
        task = make_task(owner_id, completed_topics=5)
        task_store.tasks[task.id] = task

        r = client.get("/my/dashboard")
        assert r.status_code == 200
        assert r.json() == {"streak_days": 0, "active_tasks": 1, "due_today": 1, "average_progress": 50}


def test_requires_authentication(owner_id, task_store, blob_store, session_logs, clock):
    client = TestClient(make_app(owner_id, task_store, blob_store, session_logs, clock, authenticated=False))
    r = client.get("/my/tasks")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "NOT_AUTHENTICATED"

    token = security.create_access_token({"sub": str(owner_id)})
    r = client.get("/my/tasks", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200


class TestSessionRoutes:
    def start(self, client, task_store, owner_id):
        task = make_task(owner_id, completed_topics=7)
        task_store.tasks[task.id] = task
        r = client.post(f"/my/tasks/{task.id}/sessions")
        assert r.status_code == 201
        return task, r.json()

    def test_full_session(self, client, task_store, session_logs, owner_id):
        task, run = self.start(client, task_store, owner_id)
        run_id = run["run_id"]
        assert run["phase"] == "warmup"
        assert run["quiz_size"] == 3
        assert run["motivation"]

        for index in (1, 0, 1):
            assert client.post(f"/my/sessions/{run_id}/select", json={"answer_index": index}).status_code == 200
            assert client.post(f"/my/sessions/{run_id}/submit").status_code == 200
            view = client.post(f"/my/sessions/{run_id}/advance").json()

        assert view["phase"] == "curiosity"
        assert view["score"] == 2
        assert view["curiosity_fact"]

        view = client.post(f"/my/sessions/{run_id}/proceed").json()
        assert view["phase"] == "study"
        assert view["study"]["content_reference"] == "https://example.com/os"

        r = client.post(f"/my/sessions/{run_id}/complete", json={"topics_completed": 3})
        assert r.status_code == 200
        assert r.json()["phase"] == "complete"
        assert task_store.tasks[task.id].completed_topics == 10
        assert len(session_logs.entries) == 1
        assert client.get(f"/my/sessions/{run_id}").status_code == 404

        assert client.get(f"/my/tasks/{task.id}").json()["progress"]["percent"] == 100

    def test_invalid_transition_is_conflict(self, client, task_store, owner_id):
        _, run = self.start(client, task_store, owner_id)
        r = client.post(f"/my/sessions/{run['run_id']}/proceed")
        assert r.status_code == 409
        assert r.json()["error"]["code"] == "INVALID_TRANSITION"

        r = client.get(f"/my/sessions/{run['run_id']}")
        assert r.json()["phase"] == "warmup"

    def test_negative_topics_rejected(self, client, task_store, owner_id):
        _, run = self.start(client, task_store, owner_id)
        r = client.post(f"/my/sessions/{run['run_id']}/complete", json={"topics_completed": -1})
        assert r.status_code == 422

    def test_abandon(self, client, task_store, owner_id):
        _, run = self.start(client, task_store, owner_id)
        r = client.delete(f"/my/sessions/{run['run_id']}")
        assert r.status_code == 204
        r = client.get(f"/my/sessions/{run['run_id']}")
        assert r.status_code == 404

    def test_unknown_task(self, client):
        r = client.post(f"/my/tasks/{ObjectId()}/sessions")
        assert r.status_code == 404
