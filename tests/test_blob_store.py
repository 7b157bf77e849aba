# tests/test_blob_store.py

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kickstart.core.errors import BlobStoreError
from kickstart.core.settings import Settings
from kickstart.services.storage.blob_store import (
    HttpBlobStore,
    LocalBlobStore,
    build_blob_store,
    clean_blob_name,
    mount_uploads,
)


def test_clean_blob_name():
    assert clean_blob_name("my notes (v2).pdf") == "mynotesv2.pdf"
    assert clean_blob_name("../../secret") == "secret"
    assert clean_blob_name("///") == "blob"


class TestLocalBlobStore:
    @pytest.mark.asyncio
    async def test_upload_writes_file(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://localhost:8000/uploads/")
        url = await store.upload("content-files", "content_1_2_a.pdf", b"%PDF", "application/pdf")

        assert url == "http://localhost:8000/uploads/content-files/content_1_2_a.pdf"
        assert (tmp_path / "content-files" / "content_1_2_a.pdf").read_bytes() == b"%PDF"

    def test_safe_join_rejects_traversal(self, tmp_path):
        store = LocalBlobStore(tmp_path, "http://x")
        with pytest.raises(BlobStoreError):
            store.safe_join("..", "outside")


class TestHttpBlobStore:
    @pytest.mark.asyncio
    async def test_upload_posts_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = request.content
            return httpx.Response(200, json={"Key": "ok"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = HttpBlobStore("https://storage.test/v1/", api_key="k", client=client)
            url = await store.upload("audio-recordings", "intent_1_2.wav", b"RIFF", "audio/wav")

        assert seen["url"] == "https://storage.test/v1/object/audio-recordings/intent_1_2.wav"
        assert seen["auth"] == "Bearer k"
        assert seen["body"] == b"RIFF"
        assert url == "https://storage.test/v1/object/public/audio-recordings/intent_1_2.wav"

    @pytest.mark.asyncio
    async def test_rejected_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        async with httpx.AsyncClient(transport=transport) as client:
            store = HttpBlobStore("https://storage.test", client=client)
            with pytest.raises(BlobStoreError):
                await store.upload("content-files", "a.pdf", b"x", "application/pdf")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timeout", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = HttpBlobStore("https://storage.test", client=client)
            with pytest.raises(BlobStoreError):
                await store.upload("content-files", "a.pdf", b"x", "application/pdf")


def test_build_blob_store(tmp_path):
    assert isinstance(build_blob_store(Settings(uploads_dir=str(tmp_path))), LocalBlobStore)
    http_settings = Settings(blob_backend="http", storage_endpoint="https://storage.test")
    assert isinstance(build_blob_store(http_settings), HttpBlobStore)
    with pytest.raises(ValueError):
        build_blob_store(Settings(blob_backend="http", storage_endpoint=""))


@pytest.mark.asyncio
async def test_local_upload_url_is_served(tmp_path):
    settings = Settings(uploads_dir=str(tmp_path / "uploads"), public_base_url="http://testserver/files")
    app = FastAPI()
    mount_uploads(app, settings)
    store = build_blob_store(settings)

    url = await store.upload("content-files", "notes.pdf", b"%PDF-1.4", "application/pdf")

    assert url == "http://testserver/files/content-files/notes.pdf"
    r = TestClient(app).get(url)
    assert r.status_code == 200
    assert r.content == b"%PDF-1.4"


def test_http_backend_mounts_nothing(tmp_path):
    app = FastAPI()
    mount_uploads(app, Settings(blob_backend="http", uploads_dir=str(tmp_path / "uploads")))
    assert not any(getattr(route, "name", None) == "uploads" for route in app.routes)
    assert not (tmp_path / "uploads").exists()
