# kickstart/services/storage/session_log_store.py
# Journal des sessions terminées (collection `session_logs`), source du calcul de série (streak).

from __future__ import annotations

import datetime as dt
from typing import Protocol

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from kickstart.core.bson_utils import dump_mongo
from kickstart.core.errors import PersistenceError
from kickstart.models.session import SessionLogEntry


class SessionLogStore(Protocol):
    async def append(self, entry: SessionLogEntry) -> SessionLogEntry: ...

    async def list_completed_at(self, owner_id: ObjectId) -> list[dt.datetime]: ...


class MongoSessionLogStore:
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def append(self, entry: SessionLogEntry) -> SessionLogEntry:
        doc = dump_mongo(entry)
        doc.pop("_id", None)
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            raise PersistenceError(f"Could not log session: {e}") from e
        return entry.model_copy(update={"id": result.inserted_id})

    async def list_completed_at(self, owner_id: ObjectId) -> list[dt.datetime]:
        """Dates de fin de session du propriétaire, plus récentes d'abord."""
        try:
            cursor = self.collection.find(
                {"owner_id": owner_id}, {"completed_at": 1, "_id": 0}
            ).sort("completed_at", DESCENDING)
            return [doc["completed_at"] async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(f"Could not read session log: {e}") from e
