import logging
from pathlib import Path

from pymongo.errors import PyMongoError

from kickstart.core.settings import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)


async def check_mongodb() -> str:
    """
    Vérifie la connexion MongoDB

    Returns:
        "ok" si connecté, message d'erreur sinon
    """
    try:
        from kickstart.db.mongodb import get_db

        await get_db().command("ping")
        return "ok"

    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return f"error: {str(e)}"


async def check_blob_store() -> str:
    """
    Vérifie que le stockage des artefacts est utilisable

    Returns:
        "ok" si le backend est configuré, message d'erreur sinon
    """
    if settings.blob_backend == "http":
        return "ok" if settings.storage_endpoint else "error: storage_endpoint not configured"

    try:
        Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)
        return "ok"
    except OSError as e:
        logger.error(f"Blob store health check failed: {e}")
        return f"error: {str(e)}"
