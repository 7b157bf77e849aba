from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from kickstart.core.health_checks import check_blob_store, check_mongodb
from kickstart.core.settings import get_settings
from kickstart.models.base.health import HealthCheck

settings = get_settings()

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthCheck,
    summary="Health check de l'API",
    description="Retourne le statut de l'API et de ses dépendances (BDD, stockage des artefacts)",
)
async def health() -> JSONResponse:
    """
    Health check endpoint standard

    Vérifie :
    - MongoDB
    - Stockage des artefacts

    Returns:
        200 si tout OK, 503 si un service est down
    """
    checks = {
        "database": await check_mongodb(),
        "blob_store": await check_blob_store(),
    }

    has_errors = any(check != "ok" for check in checks.values())
    overall_status = "degraded" if has_errors else "ok"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE if has_errors else status.HTTP_200_OK

    response = HealthCheck(status=overall_status, version=settings.api_version, checks=checks)

    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
