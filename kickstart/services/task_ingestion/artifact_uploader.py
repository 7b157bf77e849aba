# kickstart/services/task_ingestion/artifact_uploader.py
# Upload des artefacts d'une tâche (audio d'intention, fichier de contenu) avec nommage scopé.

from __future__ import annotations

import datetime as dt

from bson import ObjectId

from kickstart.core.errors import BlobStoreError, UploadFailed
from kickstart.core.logging_config import get_loggers
from kickstart.core.utils import epoch_ms
from kickstart.models.task import AudioBlob, ContentFile
from kickstart.services.storage.blob_store import BlobStore, clean_blob_name

logger = get_loggers()[0]

STAGE_INTENT = "intent"
STAGE_CONTENT = "content"


class ArtifactUploader:
    """Envoi des artefacts vers le stockage objet.

    Description:
        Les noms sont scopés par propriétaire et horodatage :
        - `intent_{owner_id}_{ms}.wav` dans le bucket audio ;
        - `content_{owner_id}_{ms}_{filename}` dans le bucket contenu.
        Toute erreur du stockage est convertie en `UploadFailed(stage)`.
    """

    def __init__(self, blob_store: BlobStore, audio_bucket: str, content_bucket: str):
        self.blob_store = blob_store
        self.audio_bucket = audio_bucket
        self.content_bucket = content_bucket

    @staticmethod
    def intent_name(owner_id: ObjectId, at: dt.datetime) -> str:
        return f"intent_{owner_id}_{epoch_ms(at)}.wav"

    @staticmethod
    def content_name(owner_id: ObjectId, at: dt.datetime, filename: str) -> str:
        return f"content_{owner_id}_{epoch_ms(at)}_{clean_blob_name(filename)}"

    async def upload_intent(self, owner_id: ObjectId, audio: AudioBlob, at: dt.datetime) -> str:
        name = self.intent_name(owner_id, at)
        return await self._upload(STAGE_INTENT, self.audio_bucket, name, audio.data, audio.content_type)

    async def upload_content(self, owner_id: ObjectId, content: ContentFile, at: dt.datetime) -> str:
        name = self.content_name(owner_id, at, content.filename)
        return await self._upload(STAGE_CONTENT, self.content_bucket, name, content.data, content.content_type)

    async def _upload(self, stage: str, bucket: str, name: str, data: bytes, content_type: str) -> str:
        try:
            url = await self.blob_store.upload(bucket, name, data, content_type)
        except BlobStoreError as e:
            logger.warning(f"Artifact upload failed: {e}", extra={"step": stage})
            raise UploadFailed(stage, str(e)) from e
        logger.info("Artifact uploaded", extra={"step": stage, "blob": name})
        return url
