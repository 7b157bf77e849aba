# kickstart/services/progress/dashboard.py
# Statistiques synthétiques du tableau de bord d'un utilisateur.

from __future__ import annotations

import datetime as dt
from typing import Optional

from bson import ObjectId

from kickstart.core.errors import NotAuthenticated
from kickstart.core.utils import Clock, as_utc, utcnow
from kickstart.services.storage.session_log_store import SessionLogStore
from kickstart.services.storage.task_store import TaskStore

from .progress_engine import is_due_today, progress_percent, streak_days


async def get_dashboard_stats(
    owner_id: Optional[ObjectId],
    task_store: TaskStore,
    session_logs: SessionLogStore,
    clock: Clock = utcnow,
) -> dict:
    """Calculer les statistiques du tableau de bord.

    Description:
        - `streak_days` : série de jours avec au moins une session terminée
        - `active_tasks` : nombre de tâches du propriétaire
        - `due_today` : tâches dont `next_study_date` est échue
        - `average_progress` : moyenne arrondie des pourcentages (0 sans tâche)

    Raises:
        NotAuthenticated: Aucun utilisateur.
    """
    if owner_id is None:
        raise NotAuthenticated()

    now = clock()
    tasks = await task_store.list_tasks(owner_id)
    completed_at: list[dt.datetime] = await session_logs.list_completed_at(owner_id)

    percents = [progress_percent(t) for t in tasks]
    return {
        "streak_days": streak_days(completed_at, as_utc(now).date()),
        "active_tasks": len(tasks),
        "due_today": sum(1 for t in tasks if is_due_today(t, now)),
        # demi vers le haut, comme progress_percent
        "average_progress": (2 * sum(percents) + len(percents)) // (2 * len(percents)) if percents else 0,
    }
