# kickstart/core/errors.py
# Taxonomie des erreurs métier (création de tâche, capture audio, sessions d'étude).

from __future__ import annotations

from typing import Any


class KickstartError(Exception):
    """Erreur métier de base.

    Description:
        Porte un `code` stable (repris tel quel dans l'enveloppe d'erreur HTTP) et
        un indicateur `retryable` : vrai lorsque l'appelant peut relancer l'opération
        sans ressaisir ses données.
    """

    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


class DraftValidationError(KickstartError):
    """Brouillon (ou tâche) invalide ; rejeté localement, aucun appel réseau."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors) or "Invalid task")
        self.errors = list(errors)

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["details"] = self.errors
        return detail


class DeviceUnavailable(KickstartError):
    code = "DEVICE_UNAVAILABLE"
    retryable = True


class UploadFailed(KickstartError):
    """Échec d'upload d'un artefact ; `stage` vaut `intent` ou `content`."""

    code = "UPLOAD_FAILED"
    retryable = True

    def __init__(self, stage: str, message: str = ""):
        super().__init__(message or f"Upload failed at stage '{stage}'")
        self.stage = stage

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["stage"] = self.stage
        return detail


class PersistenceError(KickstartError):
    code = "PERSISTENCE_ERROR"
    retryable = True


class InvalidTransition(KickstartError):
    code = "INVALID_TRANSITION"


class MalformedChallenge(KickstartError):
    code = "MALFORMED_CHALLENGE"


class NotAuthenticated(KickstartError):
    code = "NOT_AUTHENTICATED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class TaskNotFound(KickstartError):
    code = "NOT_FOUND"


class SessionNotFound(KickstartError):
    code = "NOT_FOUND"


class BlobStoreError(Exception):
    """Erreur brute d'un adaptateur de stockage (convertie en `UploadFailed` par le pipeline)."""
