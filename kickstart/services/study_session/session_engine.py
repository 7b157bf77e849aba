# kickstart/services/study_session/session_engine.py
# Machine à états d'une session d'étude : échauffement (quiz) → curiosité → étude → terminée.

from __future__ import annotations

import asyncio
from typing import Optional, Sequence
from uuid import uuid4

from kickstart.core.errors import InvalidTransition, MalformedChallenge
from kickstart.core.logging_config import get_loggers
from kickstart.models.session import (
    Challenge,
    ChallengeView,
    SessionPhase,
    SessionRunView,
    StudyMaterial,
)
from kickstart.models.task import Task
from kickstart.services.motivation import pick_curiosity_fact, pick_message
from kickstart.services.progress.progress_engine import ProgressEngine

logger = get_loggers()[0]


def check_challenges(challenges: Sequence[Challenge]) -> None:
    """Contrôler la cohérence du quiz.

    Raises:
        MalformedChallenge: Moins de 2 options, options dupliquées ou `correct_index` hors bornes.
    """
    for i, ch in enumerate(challenges):
        if len(ch.options) < 2:
            raise MalformedChallenge(f"Challenge {i} needs at least 2 options")
        if len(set(ch.options)) != len(ch.options):
            raise MalformedChallenge(f"Challenge {i} has duplicate options")
        if not 0 <= ch.correct_index < len(ch.options):
            raise MalformedChallenge(f"Challenge {i} has an out-of-range correct_index")


class StudySessionEngine:
    """Session d'étude en cours pour une tâche.

    Description:
        Table de transitions fermée et linéaire :
        - `warmup` : `select_answer` → `submit` (révèle, +1 si correct) → `advance`
          (question suivante, ou `curiosity` après la dernière) ;
        - `curiosity` : `proceed` → `study` ;
        - `study` : `complete(topics)` → `complete` une fois la progression persistée ;
        - `complete` : terminal.
        Toute transition illégale lève `InvalidTransition` sans modifier l'état. Les
        transitions sont sérialisées par un verrou asyncio propre à la session.
        Un quiz vide démarre directement en `curiosity`.
    """

    def __init__(
        self,
        task: Task,
        challenges: Sequence[Challenge],
        progress_engine: ProgressEngine,
        *,
        seed: int = 0,
        run_id: Optional[str] = None,
    ):
        check_challenges(challenges)
        self.run_id = run_id or uuid4().hex
        self.task = task
        self.challenges = tuple(challenges)
        self.progress_engine = progress_engine
        self.seed = seed

        self.phase = SessionPhase.WARMUP if self.challenges else SessionPhase.CURIOSITY
        self.current_index = 0
        self.score = 0
        self.selected_answer: Optional[int] = None
        self.revealed = False
        self.topics_completed: Optional[int] = None
        self._lock = asyncio.Lock()

    @property
    def owner_id(self):
        return self.task.owner_id

    @property
    def quiz_size(self) -> int:
        return len(self.challenges)

    @property
    def current_challenge(self) -> Optional[Challenge]:
        if self.phase != SessionPhase.WARMUP:
            return None
        return self.challenges[self.current_index]

    # ---------- Transitions ----------

    def _require_phase(self, phase: SessionPhase, action: str) -> None:
        if self.phase != phase:
            raise InvalidTransition(f"Cannot {action} during phase '{self.phase.value}'")

    async def select_answer(self, index: int) -> SessionRunView:
        async with self._lock:
            self._require_phase(SessionPhase.WARMUP, "select an answer")
            if self.revealed:
                raise InvalidTransition("Answer already submitted")
            if not 0 <= index < len(self.challenges[self.current_index].options):
                raise InvalidTransition(f"Answer index {index} out of range")
            self.selected_answer = index
            return self.view()

    async def submit(self) -> SessionRunView:
        """Révéler la réponse ; le score n'augmente qu'à la première soumission correcte."""
        async with self._lock:
            self._require_phase(SessionPhase.WARMUP, "submit")
            if self.revealed:
                return self.view()
            if self.selected_answer is None:
                raise InvalidTransition("No answer selected")
            self.revealed = True
            if self.selected_answer == self.challenges[self.current_index].correct_index:
                self.score += 1
            return self.view()

    async def advance(self) -> SessionRunView:
        async with self._lock:
            self._require_phase(SessionPhase.WARMUP, "advance")
            if not self.revealed:
                raise InvalidTransition("Submit an answer before advancing")
            if self.current_index + 1 < self.quiz_size:
                self.current_index += 1
            else:
                self.current_index = self.quiz_size
                self.phase = SessionPhase.CURIOSITY
            self.selected_answer = None
            self.revealed = False
            return self.view()

    async def proceed(self) -> SessionRunView:
        async with self._lock:
            self._require_phase(SessionPhase.CURIOSITY, "start studying")
            self.phase = SessionPhase.STUDY
            return self.view()

    async def complete(self, topics_completed: int) -> SessionRunView:
        """Terminer la session.

        Description:
            La phase ne passe à `complete` qu'après persistance de la progression ; si le
            moteur de progression échoue, la session reste en `study` et l'erreur remonte.

        Raises:
            InvalidTransition: Hors phase `study`.
            ValueError: Nombre de sujets négatif.
            PersistenceError: Échec de la mise à jour de la tâche.
        """
        async with self._lock:
            self._require_phase(SessionPhase.STUDY, "complete")
            self.task = await self.progress_engine.on_session_completed(
                self.task,
                topics_completed,
                score=self.score,
                quiz_size=self.quiz_size,
            )
            self.topics_completed = topics_completed
            self.phase = SessionPhase.COMPLETE
            logger.info(
                "Study session completed",
                extra={"run_id": self.run_id, "score": self.score, "quiz_size": self.quiz_size},
            )
            return self.view()

    # ---------- Lecture ----------

    def view(self) -> SessionRunView:
        """Photographie de l'état observable de la session."""
        challenge = None
        current = self.current_challenge
        if current is not None:
            challenge = ChallengeView(
                index=self.current_index,
                question=current.question,
                options=list(current.options),
                correct_index=current.correct_index if self.revealed else None,
                explanation=current.explanation if self.revealed else None,
            )

        study = None
        if self.phase in (SessionPhase.STUDY, SessionPhase.COMPLETE):
            study = StudyMaterial(
                content_kind=self.task.content_kind,
                content_reference=self.task.content_reference,
                intent_audio_url=self.task.intent_audio_url,
                intent_text=self.task.intent_text,
            )

        return SessionRunView(
            run_id=self.run_id,
            task_id=self.task.id,
            phase=self.phase,
            quiz_size=self.quiz_size,
            current_index=self.current_index,
            score=self.score,
            selected_answer=self.selected_answer,
            revealed=self.revealed,
            challenge=challenge,
            motivation=pick_message(self.seed) if self.phase == SessionPhase.WARMUP else None,
            curiosity_fact=pick_curiosity_fact(self.seed) if self.phase == SessionPhase.CURIOSITY else None,
            study=study,
            topics_completed=self.topics_completed,
        )
