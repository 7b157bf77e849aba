# kickstart/api/dto/response_format.py
# Enveloppes de réponse standard (succès / erreur) partagées par les routes et les gestionnaires d'exceptions.

from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel

from kickstart.core.errors import KickstartError

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Format standardisé pour les réponses de succès."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Format standardisé pour les réponses d'erreur.

    Example:
        {"success": false, "error": {"code": "UPLOAD_FAILED", "message": "...", "retryable": true, "stage": "content"}}
    """

    success: bool = False
    error: dict[str, Any]

    @classmethod
    def from_detail(cls, detail: Union[str, dict[str, Any]], code: str = "VALIDATION_ERROR"):
        """Créer une réponse d'erreur à partir d'un détail."""
        if isinstance(detail, str):
            return cls(error={"code": code, "message": detail})
        return cls(error={"code": code, **detail})

    @classmethod
    def from_error(cls, exc: KickstartError):
        """Créer une réponse d'erreur à partir d'une erreur métier (code, message, retryable, extras)."""
        return cls.from_detail(exc.to_detail(), code=exc.code)
