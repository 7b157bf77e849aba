# kickstart/services/progress/progress_engine.py
# Avancement d'une tâche, planification de la prochaine session, série de jours d'étude (streak).

from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional, Protocol, Union

from kickstart.core.errors import KickstartError
from kickstart.core.logging_config import get_loggers
from kickstart.core.utils import Clock, as_utc, start_of_day, utcnow
from kickstart.models._shared import ProgressSnapshot
from kickstart.models.session import SessionLogEntry
from kickstart.models.task import Task
from kickstart.services.storage.session_log_store import SessionLogStore
from kickstart.services.storage.task_store import TaskStore

logger = get_loggers()[0]

# ---------- Fonctions pures ----------


def progress_percent(task: Task) -> int:
    """Pourcentage d'avancement arrondi à l'entier le plus proche (demi vers le haut).

    Description:
        `0` si `total_topics == 0` ; borné dans [0, 100] même si les données stockées
        sont incohérentes.
    """
    total = task.total_topics
    if total <= 0:
        return 0
    done = min(max(task.completed_topics, 0), total)
    # round half up en arithmétique entière
    return (200 * done + total) // (2 * total)


def progress_snapshot(task: Task, now: Optional[dt.datetime] = None) -> ProgressSnapshot:
    return ProgressSnapshot(
        percent=progress_percent(task),
        topics_done=task.completed_topics,
        topics_total=task.total_topics,
        checked_at=now or utcnow(),
    )


def is_due_today(task: Task, now: dt.datetime) -> bool:
    return as_utc(task.next_study_date) <= as_utc(now)


def streak_days(session_log: Iterable[Union[dt.datetime, dt.date]], today: dt.date) -> int:
    """Nombre de jours consécutifs avec au moins une session terminée.

    Description:
        La série doit se terminer aujourd'hui ou hier ; sinon elle vaut 0. Les datetimes
        sont ramenés à leur jour calendaire UTC.

    Args:
        session_log: Dates (ou datetimes) de fin de session, dans n'importe quel ordre.
        today: Jour de référence.

    Returns:
        int: Longueur de la série (≥ 0).
    """
    days = {
        as_utc(item).date() if isinstance(item, dt.datetime) else item
        for item in session_log
    }
    if today in days:
        cursor = today
    elif today - dt.timedelta(days=1) in days:
        cursor = today - dt.timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= dt.timedelta(days=1)
    return streak


# ---------- Planification ----------


class SchedulingPolicy(Protocol):
    def next_study_date(self, completed_at: dt.datetime) -> dt.datetime: ...


class NextDayPolicy:
    """Prochaine session à minuit UTC, `interval_days` jours après le jour de fin de session."""

    def __init__(self, interval_days: int = 1):
        if interval_days < 1:
            raise ValueError("interval_days must be >= 1")
        self.interval_days = interval_days

    def next_study_date(self, completed_at: dt.datetime) -> dt.datetime:
        day = as_utc(completed_at).date() + dt.timedelta(days=self.interval_days)
        return start_of_day(day)


# ---------- Moteur ----------


class ProgressEngine:
    """Seul point de mutation d'une tâche commitée.

    Description:
        Applique le résultat d'une session (sujets terminés, bornés par `total_topics`),
        replanifie `next_study_date` via la politique injectée, persiste le patch puis
        ajoute une entrée au journal des sessions.
    """

    def __init__(
        self,
        task_store: TaskStore,
        session_logs: Optional[SessionLogStore] = None,
        policy: Optional[SchedulingPolicy] = None,
        clock: Clock = utcnow,
    ):
        self.task_store = task_store
        self.session_logs = session_logs
        self.policy = policy or NextDayPolicy()
        self.clock = clock

    async def on_session_completed(
        self,
        task: Task,
        topics_completed_this_session: int,
        *,
        score: int = 0,
        quiz_size: int = 0,
    ) -> Task:
        """Enregistrer la fin d'une session d'étude.

        Args:
            task: Tâche étudiée (commitée).
            topics_completed_this_session: Sujets terminés pendant la session (≥ 0).
            score: Score de l'échauffement (journal).
            quiz_size: Nombre de questions de l'échauffement (journal).

        Returns:
            Task: Tâche mise à jour, telle que persistée.

        Raises:
            ValueError: Nombre de sujets négatif (rien n'est écrit).
            PersistenceError: Échec de la relecture ou de la mise à jour de la tâche.
        """
        if topics_completed_this_session < 0:
            raise ValueError("topics_completed_this_session must be >= 0")

        completed_at = self.clock()
        # relecture : une autre session a pu avancer la tâche depuis le démarrage de celle-ci
        current = await self.task_store.get_task(task.id, task.owner_id)
        completed_topics = min(current.total_topics, current.completed_topics + topics_completed_this_session)
        completed_topics = max(completed_topics, current.completed_topics)
        patch = {
            "completed_topics": completed_topics,
            "next_study_date": self.policy.next_study_date(completed_at),
        }
        updated = await self.task_store.update_task(task.id, task.owner_id, patch)
        logger.info(
            "Session completed",
            extra={"task_id": str(task.id), "completed_topics": completed_topics},
        )

        if self.session_logs is not None:
            entry = SessionLogEntry(
                owner_id=task.owner_id,
                task_id=task.id,
                score=score,
                quiz_size=quiz_size,
                topics_completed=topics_completed_this_session,
                completed_at=completed_at,
            )
            try:
                await self.session_logs.append(entry)
            except KickstartError as e:
                # la progression est déjà commitée ; seule la série peut être sous-estimée
                logger.warning(f"Session log append failed: {e}", extra={"task_id": str(task.id)})

        return updated
