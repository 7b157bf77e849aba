# kickstart/db/mongodb.py
# Client MongoDB (motor) créé à la demande à partir des settings, et accès aux collections.

from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from kickstart.core.settings import get_settings


@lru_cache
def get_client() -> AsyncIOMotorClient:
    """Client motor unique.

    Description:
        Créé au premier appel seulement : importer ce module ne suffit pas à ouvrir
        une connexion. `tz_aware=True` pour relire des datetimes UTC aware.
    """
    settings = get_settings()
    return AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)


def get_db() -> AsyncIOMotorDatabase:
    return get_client()[get_settings().mongodb_db]


def get_collection(name: str) -> AsyncIOMotorCollection:
    """Retourne une collection MongoDB par son nom.

    Description:
        Si la collection n'existe pas encore côté serveur, MongoDB la créera à la
        première insertion.

    Args:
        name (str): Nom de la collection (ex. "tasks", "session_logs").

    Returns:
        AsyncIOMotorCollection: Collection asynchrone.
    """
    return get_db()[name]
