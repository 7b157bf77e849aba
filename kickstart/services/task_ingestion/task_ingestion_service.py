# kickstart/services/task_ingestion/task_ingestion_service.py
# Service principal de création de tâche : validation, uploads séquentiels puis commit unique.

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId

from kickstart.core.errors import KickstartError, NotAuthenticated
from kickstart.core.logging_config import extract_user_data, get_loggers
from kickstart.core.utils import Clock, utcnow
from kickstart.models.task import Task, TaskDraft, validate_draft, validate_for_commit
from kickstart.services.storage.task_store import TaskStore

from .artifact_uploader import ArtifactUploader

logger_import = get_loggers()[0]


class TaskIngestionService:
    """Service de création de tâche.

    Description:
        Transforme un brouillon en une tâche commitée, sans état partiel visible :
        1. validation locale du brouillon (aucun appel réseau en cas d'échec) ;
        2. upload de l'audio d'intention s'il existe ;
        3. upload du fichier de contenu si `content_kind == "file"` ;
        4. insertion d'une seule ligne `tasks` (point de commit) ;
        5. retour de la tâche commitée.
        Chaque étape attend le succès de la précédente. Les blobs déjà uploadés ne sont
        pas supprimés en cas d'échec ultérieur : aucune tâche ne les référence.
    """

    def __init__(
        self,
        task_store: TaskStore,
        uploader: ArtifactUploader,
        *,
        default_total_topics: int = 10,
        max_upload_bytes: Optional[int] = None,
        allowed_extensions: Optional[list[str]] = None,
        clock: Clock = utcnow,
    ):
        """Initialiser le service.

        Args:
            task_store: Store de tâches (point de commit).
            uploader: Envoi des artefacts vers le stockage objet.
            default_total_topics: Nombre de sujets placeholder d'une nouvelle tâche.
            max_upload_bytes: Taille maximale d'un artefact.
            allowed_extensions: Extensions autorisées pour le fichier de contenu.
            clock: Horloge (UTC aware).
        """
        self.task_store = task_store
        self.uploader = uploader
        self.default_total_topics = default_total_topics
        self.max_upload_bytes = max_upload_bytes
        self.allowed_extensions = allowed_extensions
        self.clock = clock

    async def create_task(self, owner_id: Optional[ObjectId], draft: TaskDraft) -> Task:
        """Créer une tâche à partir d'un brouillon.

        Args:
            owner_id: Utilisateur authentifié (None si personne n'est connecté).
            draft: Brouillon saisi.

        Returns:
            Task: Tâche commitée (avec `id`).

        Raises:
            NotAuthenticated: Aucun utilisateur.
            DraftValidationError: Brouillon invalide.
            UploadFailed: Échec d'upload (`stage` = intent | content).
            PersistenceError: Échec de l'écriture finale.
        """
        if owner_id is None:
            raise NotAuthenticated()

        summary: dict[str, Any] = {
            "title": draft.title,
            "content_kind": draft.content_kind,
            "has_intent_audio": draft.intent_audio is not None,
            "has_intent_text": bool(draft.intent_text and draft.intent_text.strip()),
        }

        try:
            # Étape 1: Validation locale
            logger_import.info("Starting task creation", extra={"step": "validation"})
            validate_draft(
                draft,
                max_upload_bytes=self.max_upload_bytes,
                allowed_extensions=self.allowed_extensions,
            )
            created_at = self.clock()

            # Étape 2: Audio d'intention
            intent_audio_url = None
            if draft.intent_audio is not None:
                intent_audio_url = await self.uploader.upload_intent(owner_id, draft.intent_audio, created_at)

            # Étape 3: Fichier de contenu (les liens n'ont rien à uploader)
            content_url = None
            if draft.content_kind == "file" and draft.content_file is not None:
                content_url = await self.uploader.upload_content(owner_id, draft.content_file, created_at)

            # Étape 4: Commit unique
            task = self.build_task(owner_id, draft, intent_audio_url, content_url, created_at)
            validate_for_commit(task)
            logger_import.info("Committing task", extra={"step": "commit"})
            committed = await self.task_store.insert_task(task)

        except KickstartError as e:
            summary["outcome"] = e.code
            summary["stage"] = getattr(e, "stage", None)
            logger_import.warning(f"Task creation aborted: {e.code}: {e.message}")
            self._log_summary(owner_id, summary)
            raise

        summary["outcome"] = "committed"
        summary["task_id"] = committed.id
        logger_import.info("Task created", extra={"step": "completed", "task_id": str(committed.id)})
        self._log_summary(owner_id, summary)
        return committed

    def build_task(
        self,
        owner_id: ObjectId,
        draft: TaskDraft,
        intent_audio_url: Optional[str],
        content_url: Optional[str],
        created_at,
    ) -> Task:
        """Assembler la tâche avec toutes ses références résolues."""
        is_file = draft.content_kind == "file"
        intent_text = draft.intent_text.strip() if draft.intent_text and draft.intent_text.strip() else None
        return Task(
            owner_id=owner_id,
            title=draft.title.strip(),
            description=draft.description.strip(),
            intent_audio_url=intent_audio_url,
            intent_text=intent_text,
            content_kind=draft.content_kind,
            content_url=content_url if is_file else None,
            content_filename=draft.content_file.filename if is_file and draft.content_file else None,
            content_link=None if is_file else (draft.content_link or "").strip(),
            total_topics=self.default_total_topics,
            completed_topics=0,
            created_at=created_at,
            next_study_date=created_at,
        )

    @staticmethod
    def _log_summary(owner_id: ObjectId, summary: dict[str, Any]) -> None:
        _, _, data_logger = get_loggers()
        data_logger.log_data("task_ingestion", summary, extract_user_data(owner_id))
