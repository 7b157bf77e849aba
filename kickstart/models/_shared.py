# kickstart/models/_shared.py
# Types communs utilisés par plusieurs modèles (ex. ProgressSnapshot).

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field

from kickstart.core.utils import utcnow


class ProgressSnapshot(BaseModel):
    """Snapshot de progression d'une tâche.

    Attributes:
        percent (int): Avancement arrondi (0–100).
        topics_done (int): Nombre de sujets terminés.
        topics_total (int): Nombre total de sujets.
        checked_at (datetime): Timestamp de calcul (UTC).
    """
    percent: int = 0
    topics_done: int = 0
    topics_total: int = 0
    checked_at: dt.datetime = Field(default_factory=utcnow)
