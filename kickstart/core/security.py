# kickstart/core/security.py
# Génération/validation JWT, fournisseur d'authentification, dépendance FastAPI `get_current_user`.

import datetime as dt
from typing import Annotated, Callable, Optional

from bson import ObjectId
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from kickstart.core.bson_utils import PyObjectId
from kickstart.core.errors import NotAuthenticated
from kickstart.core.settings import get_settings
from kickstart.core.utils import utcnow

settings = get_settings()

# auto_error=False : l'absence de jeton est convertie en `NotAuthenticated` (enveloppe standard)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", scopes={}, auto_error=False)


class AuthUser(BaseModel):
    """Utilisateur authentifié, tel que porté par le jeton (`sub`)."""
    id: PyObjectId


def create_access_token(data: dict, expires_delta: dt.timedelta | None = None) -> str:
    """Crée un access token JWT.

    Description:
        Encode un JWT signé contenant `data` (ex. `sub`) et une date d’expiration.
        L’expiration par défaut vient de `jwt_expiration_minutes`.

    Args:
        data (dict): Claims à inclure (ex. `{"sub": "<user_id>"}`).
        expires_delta (datetime.timedelta | None): Durée de validité.

    Returns:
        str: Jeton JWT signé.
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or dt.timedelta(minutes=settings.jwt_expiration_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AuthUser:
    """Décode un JWT et renvoie l'utilisateur qu'il désigne.

    Raises:
        NotAuthenticated: Jeton invalide, expiré, ou `sub` absent / non ObjectId.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise NotAuthenticated("Could not validate credentials") from e

    sub = payload.get("sub")
    if not isinstance(sub, str) or not ObjectId.is_valid(sub):
        raise NotAuthenticated("Could not validate credentials")
    return AuthUser(id=ObjectId(sub))


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> AuthUser:
    """Dépendance FastAPI: utilisateur courant depuis le jeton Bearer.

    Raises:
        NotAuthenticated: Jeton absent ou invalide (HTTP 401).
    """
    if not token:
        raise NotAuthenticated()
    return decode_access_token(token)


def get_current_user_id(current_user: Annotated[AuthUser, Depends(get_current_user)]) -> PyObjectId:
    return current_user.id


class AuthProvider:
    """Fournisseur d'authentification côté client d'API.

    Description:
        Conserve l'utilisateur courant issu d'un jeton et notifie les abonnés à chaque
        changement (connexion, déconnexion). `on_auth_change` renvoie une fonction de
        désabonnement.
    """

    def __init__(self):
        self._user: Optional[AuthUser] = None
        self._token: Optional[str] = None
        self._listeners: list[Callable[[Optional[AuthUser]], None]] = []

    def current_user(self) -> Optional[AuthUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    def sign_in(self, token: str) -> AuthUser:
        user = decode_access_token(token)
        self._user, self._token = user, token
        self._notify()
        return user

    def sign_out(self) -> None:
        if self._user is None:
            return
        self._user, self._token = None, None
        self._notify()

    def on_auth_change(self, callback: Callable[[Optional[AuthUser]], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._user)


# Type aliases pour faciliter l'usage
CurrentUser = Annotated[AuthUser, Depends(get_current_user)]
CurrentUserId = Annotated[PyObjectId, Depends(get_current_user_id)]
