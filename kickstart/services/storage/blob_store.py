# kickstart/services/storage/blob_store.py
# Stockage des artefacts (audio d'intention, fichiers de contenu) : disque local ou API objet HTTP.

from __future__ import annotations

from pathlib import Path
from typing import Protocol
from urllib.parse import quote, urlparse

import httpx
from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.staticfiles import StaticFiles

from kickstart.core.errors import BlobStoreError
from kickstart.core.logging_config import get_loggers
from kickstart.core.settings import Settings

logger = get_loggers()[0]


class BlobStore(Protocol):
    async def upload(self, bucket: str, name: str, data: bytes, content_type: str) -> str:
        """Stocke `data` sous `bucket/name` et renvoie une URL durable."""
        ...


def clean_blob_name(name: str) -> str:
    """Nom de fichier réduit à `[A-Za-z0-9._-]` (pas de séparateur de chemin)."""
    cleaned = "".join(c for c in name if c.isalnum() or c in ".-_").lstrip(".")
    return cleaned or "blob"


class LocalBlobStore:
    """Stockage sur disque, servi sous `public_base_url`.

    Description:
        Les fichiers sont écrits dans `root_dir/<bucket>/<name>`. L'écriture disque est
        déportée dans le threadpool pour ne pas bloquer la boucle asyncio.
    """

    def __init__(self, root_dir: Path, public_base_url: str):
        self.root_dir = Path(root_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def safe_join(self, *parts: str) -> Path:
        """Joindre des chemins en empêchant le path traversal.

        Raises:
            BlobStoreError: Si le chemin résultant sort de `root_dir`.
        """
        result = self.root_dir.joinpath(*parts)
        try:
            result.resolve().relative_to(self.root_dir)
        except ValueError as e:
            raise BlobStoreError(f"Path traversal attempt detected: {'/'.join(parts)}") from e
        return result

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def upload(self, bucket: str, name: str, data: bytes, content_type: str) -> str:
        path = self.safe_join(clean_blob_name(bucket), clean_blob_name(name))
        try:
            await run_in_threadpool(self._write, path, data)
        except OSError as e:
            raise BlobStoreError(f"Cannot write {path.name}: {e}") from e
        return f"{self.public_base_url}/{path.parent.name}/{quote(path.name)}"


class HttpBlobStore:
    """Stockage via une API objet HTTP (type Supabase Storage).

    Description:
        `POST {endpoint}/object/{bucket}/{name}` avec le contenu brut ; l'URL publique
        renvoyée est `{endpoint}/object/public/{bucket}/{name}`. Erreurs réseau, timeouts
        et statuts non-2xx deviennent des `BlobStoreError`.
    """

    def __init__(self, endpoint: str, api_key: str = "", timeout_s: float = 10.0,
                 client: httpx.AsyncClient | None = None):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._client = client

    def _headers(self, content_type: str) -> dict[str, str]:
        headers = {"Content-Type": content_type, "x-upsert": "false"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, client: httpx.AsyncClient, url: str, data: bytes, content_type: str) -> httpx.Response:
        return await client.post(url, content=data, headers=self._headers(content_type))

    async def upload(self, bucket: str, name: str, data: bytes, content_type: str) -> str:
        object_path = f"{quote(bucket)}/{quote(clean_blob_name(name))}"
        url = f"{self.endpoint}/object/{object_path}"
        try:
            if self._client is not None:
                resp = await self._post(self._client, url, data, content_type)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    resp = await self._post(client, url, data, content_type)
        except httpx.HTTPError as e:
            logger.warning(f"Blob upload error: {e}", extra={"bucket": bucket})
            raise BlobStoreError(f"Upload to {bucket} failed: {e}") from e

        if resp.status_code >= 300:
            raise BlobStoreError(f"Upload to {bucket} rejected (HTTP {resp.status_code})")

        return f"{self.endpoint}/object/public/{object_path}"


def build_blob_store(settings: Settings) -> BlobStore:
    """Instancie l'adaptateur configuré (`blob_backend` = `local` ou `http`)."""
    if settings.blob_backend == "http":
        if not settings.storage_endpoint:
            raise ValueError("storage_endpoint is required when blob_backend is 'http'")
        return HttpBlobStore(settings.storage_endpoint, settings.storage_api_key, settings.storage_timeout_s)
    return LocalBlobStore(Path(settings.uploads_dir), settings.public_base_url)


def mount_uploads(app: FastAPI, settings: Settings) -> None:
    """Servir les fichiers de `LocalBlobStore` sous le chemin de `public_base_url`.

    Description:
        Sans effet pour le backend `http` : les URLs renvoyées pointent alors vers le
        service de stockage externe.
    """
    if settings.blob_backend == "http":
        return
    Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)
    path = urlparse(settings.public_base_url).path.rstrip("/") or "/uploads"
    app.mount(path, StaticFiles(directory=settings.uploads_dir), name="uploads")
    logger.info(f"Serving local uploads under {path}")
