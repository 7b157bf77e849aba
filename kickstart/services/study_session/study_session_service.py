# kickstart/services/study_session/study_session_service.py
# Orchestration des sessions d'étude : chargement de la tâche, quiz, enregistrement, abandon.

from __future__ import annotations

import random
from typing import Optional

from bson import ObjectId

from kickstart.core.errors import NotAuthenticated
from kickstart.core.logging_config import get_loggers
from kickstart.models.session import SessionRunView
from kickstart.services.content_analysis import ContentAnalyzer
from kickstart.services.motivation import new_seed
from kickstart.services.progress.progress_engine import ProgressEngine
from kickstart.services.storage.task_store import TaskStore

from .session_engine import StudySessionEngine
from .session_registry import SessionRegistry

logger = get_loggers()[0]


class StudySessionService:
    """Service de sessions d'étude.

    Description:
        Point d'entrée des sessions : la graine des messages est tirée ici, le moteur
        de session restant déterministe.
    """

    def __init__(
        self,
        task_store: TaskStore,
        analyzer: ContentAnalyzer,
        progress_engine: ProgressEngine,
        registry: Optional[SessionRegistry] = None,
        rng: Optional[random.Random] = None,
    ):
        self.task_store = task_store
        self.analyzer = analyzer
        self.progress_engine = progress_engine
        self.registry = registry if registry is not None else SessionRegistry()
        self.rng = rng

    async def start_session(self, owner_id: Optional[ObjectId], task_id: ObjectId) -> StudySessionEngine:
        """Démarrer une session sur une tâche du propriétaire.

        Raises:
            NotAuthenticated: Aucun utilisateur.
            TaskNotFound: Tâche absente ou appartenant à un autre utilisateur.
            MalformedChallenge: Quiz incohérent renvoyé par l'analyseur.
        """
        if owner_id is None:
            raise NotAuthenticated()
        task = await self.task_store.get_task(task_id, owner_id)
        analysis = await self.analyzer.analyze(task)
        engine = StudySessionEngine(
            task,
            analysis.challenges,
            self.progress_engine,
            seed=new_seed(self.rng),
        )
        await self.registry.add(engine)
        logger.info("Study session started", extra={"run_id": engine.run_id, "task_id": str(task_id)})
        return engine

    async def get_session(self, owner_id: Optional[ObjectId], run_id: str) -> StudySessionEngine:
        if owner_id is None:
            raise NotAuthenticated()
        return await self.registry.get(owner_id, run_id)

    async def abandon(self, owner_id: Optional[ObjectId], run_id: str) -> None:
        """Abandonner une session : aucune progression n'est enregistrée."""
        if owner_id is None:
            raise NotAuthenticated()
        engine = await self.registry.remove(owner_id, run_id)
        logger.info("Study session abandoned", extra={"run_id": run_id, "phase": engine.phase.value})

    async def complete(self, owner_id: Optional[ObjectId], run_id: str, topics_completed: int) -> SessionRunView:
        """Terminer une session puis la retirer du registre.

        Description:
            Une session terminée n'accepte plus aucune transition : elle est évincée dès
            que la progression est persistée. En cas d'échec elle reste enregistrée, en
            phase d'étude, et peut être retentée.

        Returns:
            SessionRunView: État final de la session.
        """
        engine = await self.get_session(owner_id, run_id)
        view = await engine.complete(topics_completed)
        await self.registry.discard(run_id)
        return view
