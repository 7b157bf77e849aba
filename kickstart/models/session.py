# kickstart/models/session.py
# Sessions d'étude : questions d'échauffement, phases, vue d'une session en cours, journal des sessions.

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from kickstart.core.bson_utils import MongoBaseModel, PyObjectId
from kickstart.core.utils import utcnow


class SessionPhase(str, Enum):
    WARMUP = "warmup"
    CURIOSITY = "curiosity"
    STUDY = "study"
    COMPLETE = "complete"


class Challenge(BaseModel):
    """Question à choix multiple de la phase d'échauffement.

    Description:
        Fournie par le collaborateur d'analyse de contenu. Le modèle reste permissif :
        la cohérence (≥ 2 options uniques, `correct_index` valide) est contrôlée à la
        construction de la session (`MalformedChallenge`).
    """
    question: str
    options: List[str]
    correct_index: int
    explanation: str = ""


class ChallengeView(BaseModel):
    """Question telle qu'exposée au client (réponse masquée tant qu'elle n'est pas révélée)."""
    index: int
    question: str
    options: List[str]
    correct_index: Optional[int] = None
    explanation: Optional[str] = None


class StudyMaterial(BaseModel):
    """Ce que la phase d'étude présente : le contenu et l'intention enregistrée."""
    content_kind: str
    content_reference: Optional[str] = None
    intent_audio_url: Optional[str] = None
    intent_text: Optional[str] = None


class SessionRunView(BaseModel):
    """État observable d'une session en cours."""
    run_id: str
    task_id: PyObjectId
    phase: SessionPhase
    quiz_size: int
    current_index: int
    score: int
    selected_answer: Optional[int] = None
    revealed: bool = False
    challenge: Optional[ChallengeView] = None
    motivation: Optional[str] = None
    curiosity_fact: Optional[str] = None
    study: Optional[StudyMaterial] = None
    topics_completed: Optional[int] = None


class SessionLogEntry(MongoBaseModel):
    """Document Mongo « SessionLog » : une session terminée (append-only).

    Attributes:
        owner_id (PyObjectId): Réf. utilisateur.
        task_id (PyObjectId): Réf. tâche étudiée.
        score (int): Bonnes réponses à l'échauffement.
        quiz_size (int): Nombre de questions posées.
        topics_completed (int): Sujets déclarés terminés pendant la session.
        completed_at (datetime): Fin de session (UTC).
    """
    owner_id: PyObjectId
    task_id: PyObjectId
    score: int = 0
    quiz_size: int = 0
    topics_completed: int = 0
    completed_at: dt.datetime = Field(default_factory=utcnow)
