# kickstart/services/study_session/session_registry.py
# Registre en mémoire des sessions en cours, scopé par propriétaire.

from __future__ import annotations

import asyncio

from bson import ObjectId

from kickstart.core.errors import SessionNotFound

from .session_engine import StudySessionEngine


class SessionRegistry:
    """Sessions actives indexées par `run_id`.

    Description:
        Une session n'est visible que de son propriétaire : un `run_id` appartenant à un
        autre utilisateur se comporte comme un `run_id` inconnu (`SessionNotFound`).
    """

    def __init__(self):
        self._runs: dict[str, StudySessionEngine] = {}
        self._lock = asyncio.Lock()

    async def add(self, engine: StudySessionEngine) -> None:
        async with self._lock:
            self._runs[engine.run_id] = engine

    async def get(self, owner_id: ObjectId, run_id: str) -> StudySessionEngine:
        async with self._lock:
            engine = self._runs.get(run_id)
        if engine is None or engine.owner_id != owner_id:
            raise SessionNotFound("Session not found")
        return engine

    async def remove(self, owner_id: ObjectId, run_id: str) -> StudySessionEngine:
        async with self._lock:
            engine = self._runs.get(run_id)
            if engine is None or engine.owner_id != owner_id:
                raise SessionNotFound("Session not found")
            return self._runs.pop(run_id)

    async def discard(self, run_id: str) -> None:
        async with self._lock:
            self._runs.pop(run_id, None)

    def __len__(self) -> int:
        return len(self._runs)
