# tests/test_app.py

from fastapi import FastAPI
from fastapi.testclient import TestClient

from kickstart.api.routes import health
from kickstart.core.exception_handlers import register_exception_handlers
from kickstart.core.middleware import MaxBodySizeMiddleware


def make_health_app(monkeypatch, db_status):
    async def fake_mongo():
        return db_status

    async def fake_blob():
        return "ok"

    monkeypatch.setattr("kickstart.api.routes.health.check_mongodb", fake_mongo)
    monkeypatch.setattr("kickstart.api.routes.health.check_blob_store", fake_blob)
    app = FastAPI()
    app.include_router(health.router)
    return TestClient(app)


def test_health_ok(monkeypatch):
    r = make_health_app(monkeypatch, "ok").get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["checks"] == {"database": "ok", "blob_store": "ok"}


def test_health_degraded(monkeypatch):
    r = make_health_app(monkeypatch, "error: down").get("/health")
    assert r.status_code == 503
    assert r.json()["status"] == "degraded"


def test_body_size_limit():
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(MaxBodySizeMiddleware, max_body_size=10)

    @app.post("/echo")
    async def echo():
        return {"ok": True}

    client = TestClient(app)
    assert client.post("/echo", content=b"12345").status_code == 200
    r = client.post("/echo", content=b"x" * 100)
    assert r.status_code == 413
    assert r.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


def test_data_logger_keeps_a_valid_json_array(tmp_path):
    import json

    from bson import ObjectId

    from kickstart.core.logging_config import DataLogger

    data_logger = DataLogger(str(tmp_path))
    owner = ObjectId()
    data_logger.log_data("task_ingestion", {"outcome": "committed"}, {"owner_id": owner})
    data_logger.log_data("task_ingestion", {"outcome": "UPLOAD_FAILED", "stage": "intent"})

    (json_file,) = tmp_path.glob("*-data.json")
    entries = json.loads(json_file.read_text(encoding="utf-8"))
    assert [e["data"]["outcome"] for e in entries] == ["committed", "UPLOAD_FAILED"]
    assert entries[0]["user_data"]["owner_id"] == str(owner)


def test_secret_inserted_after_auth_section():
    from generate_secret import env_key_exists, generate_secret_key, with_key_after_anchor

    lines = ["MONGODB_DB=kickstart\n", "# Auth\n", "JWT_ALGORITHM=HS256\n"]
    new_lines, anchored = with_key_after_anchor(lines, "JWT_SECRET_KEY", "abc", "# Auth")
    assert anchored
    assert new_lines[2] == "JWT_SECRET_KEY=abc\n"
    assert env_key_exists(new_lines, "JWT_SECRET_KEY")

    new_lines, anchored = with_key_after_anchor(["A=1"], "JWT_SECRET_KEY", "abc", "# Auth")
    assert not anchored
    assert new_lines == ["A=1", "\n", "# Auth\n", "JWT_SECRET_KEY=abc\n"]
    assert len(generate_secret_key()) == 128
