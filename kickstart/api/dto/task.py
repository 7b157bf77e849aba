# kickstart/api/dto/task.py
# DTOs des tâches d'étude et du tableau de bord

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from kickstart.core.bson_utils import PyObjectId
from kickstart.models._shared import ProgressSnapshot
from kickstart.models.task import ContentKind, Task
from kickstart.services.progress.progress_engine import is_due_today, progress_snapshot


class TaskOut(BaseModel):
    """Tâche telle que renvoyée par l'API.

    Attributes:
        id (PyObjectId): Identifiant de la tâche.
        title (str): Titre.
        description (str): Description.
        intent_audio_url (str | None): URL de l'enregistrement d'intention.
        intent_text (str | None): Intention saisie au clavier.
        content_kind (Literal['file','link']): Type de contenu.
        content_url (str | None): URL du fichier uploadé.
        content_filename (str | None): Nom d'origine du fichier.
        content_link (str | None): Lien externe.
        total_topics (int): Nombre de sujets.
        completed_topics (int): Sujets terminés.
        created_at (datetime): Date de création.
        next_study_date (datetime): Prochaine session prévue.
        progress (ProgressSnapshot): Avancement calculé.
        due_today (bool): Session due aujourd'hui.
    """

    id: PyObjectId
    title: str
    description: str
    intent_audio_url: Optional[str] = None
    intent_text: Optional[str] = None
    content_kind: ContentKind
    content_url: Optional[str] = None
    content_filename: Optional[str] = None
    content_link: Optional[str] = None
    total_topics: int = Field(gt=0)
    completed_topics: int = Field(ge=0)
    created_at: datetime
    next_study_date: datetime
    progress: ProgressSnapshot
    due_today: bool = False

    @classmethod
    def from_task(cls, task: Task, now: datetime) -> "TaskOut":
        data = task.model_dump(exclude={"owner_id"})
        return cls(**data, progress=progress_snapshot(task, now), due_today=is_due_today(task, now))


class TaskListOut(BaseModel):
    tasks: list[TaskOut]


class DashboardOut(BaseModel):
    """Statistiques du tableau de bord.

    Attributes:
        streak_days (int): Jours consécutifs avec au moins une session terminée.
        active_tasks (int): Nombre de tâches.
        due_today (int): Tâches dont la session est due.
        average_progress (int): Avancement moyen (%).
    """

    streak_days: int = Field(ge=0, description="Jours d'étude consécutifs")
    active_tasks: int = Field(ge=0, description="Nombre de tâches")
    due_today: int = Field(ge=0, description="Tâches à étudier aujourd'hui")
    average_progress: int = Field(ge=0, le=100, description="Avancement moyen (%)")
