# kickstart/models/task.py
# Modèle « Task » (objectif d'étude), brouillon de création, artefacts et règles de validation.

from __future__ import annotations

import datetime as dt
from pathlib import PurePath
from typing import Any, Iterable, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from kickstart.core.bson_utils import MongoBaseModel, PyObjectId
from kickstart.core.errors import DraftValidationError
from kickstart.core.utils import utcnow

ContentKind = Literal["file", "link"]


class AudioBlob(BaseModel):
    """Enregistrement audio de l'intention.

    Attributes:
        data (bytes): Octets capturés.
        duration_s (float): Durée de l'enregistrement (secondes).
        content_type (str): Type MIME.
    """
    data: bytes
    duration_s: float = 0.0
    content_type: str = "audio/wav"


class ContentFile(BaseModel):
    """Fichier de contenu d'étude (PDF) à uploader."""
    filename: str
    data: bytes
    content_type: str = "application/pdf"


class TaskDraft(BaseModel):
    """Brouillon de tâche (non validé, non persisté).

    Description:
        Regroupe les saisies des trois étapes de création : objectif (titre, description),
        intention (audio et/ou texte) et contenu (fichier ou lien selon `content_kind`).
    """
    title: str = ""
    description: str = ""
    intent_audio: Optional[AudioBlob] = None
    intent_text: Optional[str] = None
    content_kind: ContentKind = "file"
    content_file: Optional[ContentFile] = None
    content_link: Optional[str] = None


class Task(MongoBaseModel):
    """Document Mongo « Task ».

    Description:
        Objectif d'étude d'un utilisateur. Créé en une seule écriture par le pipeline
        d'ingestion, modifié ensuite uniquement par le moteur de progression
        (`completed_topics`, `next_study_date`).

    Attributes:
        owner_id (PyObjectId): Réf. utilisateur propriétaire.
        title (str): Titre.
        description (str): Description.
        intent_audio_url (str | None): URL de l'enregistrement d'intention.
        intent_text (str | None): Intention saisie au clavier.
        content_kind (Literal['file','link']): Discriminant du contenu.
        content_url (str | None): URL du fichier uploadé (kind `file`).
        content_filename (str | None): Nom d'origine du fichier uploadé.
        content_link (str | None): Lien externe (kind `link`).
        total_topics (int): Nombre de sujets (placeholder tant que l'analyse n'est pas branchée).
        completed_topics (int): Sujets terminés, dans [0, total_topics].
        created_at (datetime): Création (UTC).
        next_study_date (datetime): Prochaine session prévue (UTC).
    """
    owner_id: PyObjectId
    title: str
    description: str
    intent_audio_url: Optional[str] = None
    intent_text: Optional[str] = None
    content_kind: ContentKind
    content_url: Optional[str] = None
    content_filename: Optional[str] = None
    content_link: Optional[str] = None
    total_topics: int
    completed_topics: int = 0
    created_at: dt.datetime = Field(default_factory=utcnow)
    next_study_date: dt.datetime = Field(default_factory=utcnow)

    @property
    def content_reference(self) -> Optional[str]:
        return self.content_url if self.content_kind == "file" else self.content_link


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def is_http_url(value: str) -> bool:
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _check_text_fields(candidate: Any, errors: list[str]) -> None:
    if _blank(candidate.title):
        errors.append("title must not be empty")
    if _blank(candidate.description):
        errors.append("description must not be empty")


def validate_for_commit(task: Task) -> None:
    """Vérifie qu'une tâche est complète avant son écriture.

    Description:
        Règles : titre/description non vides ; intention présente (audio ou texte) ;
        exactement une référence de contenu, cohérente avec `content_kind` ;
        `total_topics > 0` et `0 <= completed_topics <= total_topics`.
        Aucune I/O.

    Args:
        task (Task): Tâche construite par le pipeline.

    Raises:
        DraftValidationError: Avec la liste de toutes les règles violées.
    """
    errors: list[str] = []
    _check_text_fields(task, errors)

    if _blank(task.intent_audio_url) and _blank(task.intent_text):
        errors.append("an intent (audio recording or text) is required")

    if task.content_kind == "file":
        if _blank(task.content_url):
            errors.append("content_url is required for a file task")
        if task.content_link:
            errors.append("content_link must not be set for a file task")
    elif task.content_kind == "link":
        if _blank(task.content_link):
            errors.append("content_link is required for a link task")
        if task.content_url:
            errors.append("content_url must not be set for a link task")
    else:
        errors.append(f"unknown content_kind: {task.content_kind!r}")

    if task.total_topics <= 0:
        errors.append("total_topics must be positive")
    elif not 0 <= task.completed_topics <= task.total_topics:
        errors.append("completed_topics must be within [0, total_topics]")

    if errors:
        raise DraftValidationError(errors)


def validate_draft(
    draft: TaskDraft,
    *,
    max_upload_bytes: Optional[int] = None,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> None:
    """Valide un brouillon avant tout upload.

    Description:
        Mêmes règles que `validate_for_commit`, appliquées aux saisies brutes, plus
        les contrôles propres aux artefacts : audio non vide, lien http(s) absolu,
        fichier non vide, de taille et d'extension autorisées.

    Raises:
        DraftValidationError: Si au moins une règle est violée.
    """
    errors: list[str] = []
    _check_text_fields(draft, errors)

    audio = draft.intent_audio
    if audio is not None and not audio.data:
        errors.append("intent audio recording is empty")
    if (audio is None or not audio.data) and _blank(draft.intent_text):
        errors.append("an intent (audio recording or text) is required")

    if draft.content_kind == "file":
        content = draft.content_file
        if content is None:
            errors.append("a content file is required for a file task")
        else:
            if not content.data:
                errors.append("content file is empty")
            elif max_upload_bytes is not None and len(content.data) > max_upload_bytes:
                errors.append(f"content file exceeds {max_upload_bytes} bytes")
            if allowed_extensions is not None:
                allowed = {ext.lower() for ext in allowed_extensions}
                if PurePath(content.filename).suffix.lower() not in allowed:
                    errors.append(f"content file type not allowed ({', '.join(sorted(allowed))})")
        if draft.content_link:
            errors.append("content_link must not be set for a file task")
    elif draft.content_kind == "link":
        if _blank(draft.content_link):
            errors.append("a content link is required for a link task")
        elif not is_http_url(draft.content_link):
            errors.append("content link must be an http(s) URL")
        if draft.content_file is not None:
            errors.append("content_file must not be set for a link task")
    else:
        errors.append(f"unknown content_kind: {draft.content_kind!r}")

    if audio is not None and max_upload_bytes is not None and len(audio.data) > max_upload_bytes:
        errors.append(f"intent audio exceeds {max_upload_bytes} bytes")

    if errors:
        raise DraftValidationError(errors)
