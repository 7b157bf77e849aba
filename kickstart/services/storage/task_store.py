# kickstart/services/storage/task_store.py
# Contrat du store de tâches (toujours scopé par propriétaire) et implémentation MongoDB (motor).

from __future__ import annotations

from typing import Any, Protocol

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from kickstart.core.bson_utils import dump_mongo
from kickstart.core.errors import PersistenceError, TaskNotFound
from kickstart.core.logging_config import get_loggers
from kickstart.models.task import Task

logger = get_loggers()[0]

# Seuls champs modifiables d'une tâche commitée (moteur de progression)
MUTABLE_FIELDS = frozenset({"completed_topics", "next_study_date"})
# Champs qui ne peuvent qu'augmenter
MONOTONE_FIELDS = frozenset({"completed_topics"})


def build_update(patch: dict[str, Any]) -> dict[str, Any]:
    """Traduit un patch en opérateurs MongoDB (`$max` pour les champs monotones, `$set` sinon)."""
    update: dict[str, Any] = {}
    maxed = {k: v for k, v in patch.items() if k in MONOTONE_FIELDS}
    others = {k: v for k, v in patch.items() if k not in MONOTONE_FIELDS}
    if maxed:
        update["$max"] = maxed
    if others:
        update["$set"] = others
    return update


class TaskStore(Protocol):
    async def insert_task(self, task: Task) -> Task: ...

    async def get_task(self, task_id: ObjectId, owner_id: ObjectId) -> Task: ...

    async def list_tasks(self, owner_id: ObjectId) -> list[Task]: ...

    async def update_task(self, task_id: ObjectId, owner_id: ObjectId, patch: dict[str, Any]) -> Task: ...


class MongoTaskStore:
    """Store de tâches adossé à la collection `tasks`.

    Description:
        Toute erreur du driver (réseau, timeout, écriture refusée) est remontée sous la
        forme unique `PersistenceError`, afin que les appelants aient un comportement
        d'abandon uniforme.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def insert_task(self, task: Task) -> Task:
        """Insère la tâche (point de commit unique du pipeline) et la renvoie avec son `id`."""
        doc = dump_mongo(task)
        doc.pop("_id", None)
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Task insert failed: {e}")
            raise PersistenceError(f"Could not save task: {e}") from e
        return task.model_copy(update={"id": result.inserted_id})

    async def get_task(self, task_id: ObjectId, owner_id: ObjectId) -> Task:
        try:
            doc = await self.collection.find_one({"_id": task_id, "owner_id": owner_id})
        except PyMongoError as e:
            raise PersistenceError(f"Could not load task: {e}") from e
        if doc is None:
            raise TaskNotFound("Task not found")
        return Task(**doc)

    async def list_tasks(self, owner_id: ObjectId) -> list[Task]:
        """Tâches du propriétaire, plus récentes d'abord."""
        try:
            cursor = self.collection.find({"owner_id": owner_id}).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise PersistenceError(f"Could not list tasks: {e}") from e
        return [Task(**doc) for doc in docs]

    async def update_task(self, task_id: ObjectId, owner_id: ObjectId, patch: dict[str, Any]) -> Task:
        """Applique le patch et renvoie la tâche à jour.

        Description:
            `completed_topics` est écrit avec `$max` : deux sessions concurrentes sur la
            même tâche ne peuvent jamais faire reculer la progression.
        """
        unexpected = set(patch) - MUTABLE_FIELDS
        if unexpected:
            raise ValueError(f"Immutable task fields in patch: {sorted(unexpected)}")
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": task_id, "owner_id": owner_id},
                build_update(patch),
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Task update failed: {e}", extra={"task_id": str(task_id)})
            raise PersistenceError(f"Could not update task: {e}") from e
        if doc is None:
            raise TaskNotFound("Task not found")
        return Task(**doc)
