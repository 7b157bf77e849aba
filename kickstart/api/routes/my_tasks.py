# kickstart/api/routes/my_tasks.py
# Routes "mes tâches" : créer une tâche (formulaire multipart), lister, lire, tableau de bord.

from __future__ import annotations

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile, status

from kickstart.api.deps import (
    get_clock,
    get_ingestion_service,
    get_session_log_store,
    get_task_store,
)
from kickstart.api.dto.task import DashboardOut, TaskListOut, TaskOut
from kickstart.core.bson_utils import PyObjectId
from kickstart.core.security import CurrentUserId, get_current_user
from kickstart.core.utils import Clock
from kickstart.models.task import AudioBlob, ContentFile, TaskDraft
from kickstart.services.progress.dashboard import get_dashboard_stats
from kickstart.services.storage.session_log_store import SessionLogStore
from kickstart.services.storage.task_store import TaskStore
from kickstart.services.task_ingestion.task_ingestion_service import TaskIngestionService

router = APIRouter(prefix="/my", tags=["my-tasks"], dependencies=[Depends(get_current_user)])


async def _read_upload(upload: Optional[UploadFile]) -> Optional[tuple[str, bytes, Optional[str]]]:
    # un champ fichier laissé vide arrive parfois sans nom ; on le traite comme absent
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return upload.filename, data, upload.content_type


@router.post(
    "/tasks",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer une tâche d'étude",
    description=(
        "Crée une tâche à partir d'un formulaire multipart : objectif (titre, description), "
        "intention (enregistrement audio et/ou texte) et contenu (fichier PDF ou lien).\n\n"
        "La tâche n'est enregistrée que si tous les artefacts ont été uploadés."
    ),
)
async def create_task_route(
    user_id: CurrentUserId,
    service: Annotated[TaskIngestionService, Depends(get_ingestion_service)],
    clock: Annotated[Clock, Depends(get_clock)],
    title: str = Form(""),
    description: str = Form(""),
    intent_text: Optional[str] = Form(None),
    intent_duration_s: float = Form(0.0, ge=0),
    content_kind: Literal["file", "link"] = Form("file"),
    content_link: Optional[str] = Form(None),
    intent_audio: Optional[UploadFile] = File(None),
    content_file: Optional[UploadFile] = File(None),
) -> TaskOut:
    """Créer une tâche d'étude.

    Description:
        Construit le brouillon à partir du formulaire puis délègue au pipeline
        d'ingestion (validation, uploads, commit unique).

    Returns:
        TaskOut: Tâche créée.

    Raises:
        DraftValidationError: 422, brouillon invalide (toutes les règles violées listées).
        UploadFailed: 502, échec d'upload (`stage` = intent | content).
        PersistenceError: 503, échec de l'écriture finale.
    """
    audio = await _read_upload(intent_audio)
    content = await _read_upload(content_file)

    draft = TaskDraft(
        title=title,
        description=description,
        intent_audio=(
            AudioBlob(data=audio[1], duration_s=intent_duration_s, content_type=audio[2] or "audio/wav")
            if audio
            else None
        ),
        intent_text=intent_text,
        content_kind=content_kind,
        content_file=(
            ContentFile(filename=content[0], data=content[1], content_type=content[2] or "application/pdf")
            if content
            else None
        ),
        content_link=content_link,
    )
    task = await service.create_task(user_id, draft)
    return TaskOut.from_task(task, clock())


@router.get(
    "/tasks",
    response_model=TaskListOut,
    summary="Lister mes tâches",
    description="Retourne les tâches de l'utilisateur courant, **plus récentes d'abord**, avec leur avancement.",
)
async def list_tasks_route(
    user_id: CurrentUserId,
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TaskListOut:
    now = clock()
    tasks = await task_store.list_tasks(user_id)
    return TaskListOut(tasks=[TaskOut.from_task(t, now) for t in tasks])


@router.get(
    "/tasks/{task_id}",
    response_model=TaskOut,
    summary="Lire une tâche",
)
async def get_task_route(
    user_id: CurrentUserId,
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    clock: Annotated[Clock, Depends(get_clock)],
    task_id: PyObjectId = Path(..., description="Identifiant de la tâche."),
) -> TaskOut:
    """Lire une tâche de l'utilisateur courant.

    Raises:
        TaskNotFound: 404 si la tâche n'existe pas ou appartient à un autre utilisateur.
    """
    task = await task_store.get_task(task_id, user_id)
    return TaskOut.from_task(task, clock())


@router.get(
    "/dashboard",
    response_model=DashboardOut,
    summary="Statistiques du tableau de bord",
    description=(
        "**Métriques incluses :**\n"
        "- Série de jours d'étude consécutifs\n"
        "- Nombre de tâches\n"
        "- Tâches à étudier aujourd'hui\n"
        "- Avancement moyen"
    ),
)
async def dashboard_route(
    user_id: CurrentUserId,
    task_store: Annotated[TaskStore, Depends(get_task_store)],
    session_logs: Annotated[SessionLogStore, Depends(get_session_log_store)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> DashboardOut:
    stats = await get_dashboard_stats(user_id, task_store, session_logs, clock)
    return DashboardOut(**stats)
