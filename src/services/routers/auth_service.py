"""
Autenticazione bearer JWT e autorizzazione per ruolo/permesso.

Il login è esterno: qui si validano i token e si controllano i permessi CRUD
(C, R, U, D) portati dai ruoli del token. Le impostazioni dei colli e gli
acquisti di etichette richiedono il ruolo ADMIN.
"""
from datetime import datetime, timedelta
from functools import wraps
from typing import Annotated, Any, Dict, List, Optional, Set

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from starlette import status

from src.core.settings import get_auth_settings

bearer_scheme = HTTPBearer(auto_error=False)
credentials_dependency = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _signing_key() -> str:
    secret = get_auth_settings().secret_key
    if not secret:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="SECRET_KEY non configurata")
    return secret


async def get_current_user(credentials: credentials_dependency) -> Dict[str, Any]:
    """Utente del bearer token: {"username", "id", "roles"}"""
    if credentials is None or not credentials.credentials:
        raise _unauthenticated("Utente non autenticato")
    try:
        claims = jwt.decode(credentials.credentials, _signing_key(), algorithms=[get_auth_settings().jwt_algorithm])
    except JWTError:
        raise _unauthenticated("Token non valido o scaduto")

    if claims.get("sub") is None or claims.get("id") is None:
        raise _unauthenticated("Credenziali non valide")
    return {"username": claims["sub"], "id": claims["id"], "roles": claims.get("roles") or []}


def create_access_token(username: str, user_id: int, roles: List[dict], expires_delta: Optional[timedelta] = None) -> str:
    """Firma un token per l'utente (ruoli: [{"name": ..., "permissions": [...]}])"""
    settings = get_auth_settings()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": username,
        "id": user_id,
        "roles": [{"name": role["name"], "permissions": role.get("permissions", [])} for role in roles],
        "exp": datetime.utcnow() + lifetime,
    }
    return jwt.encode(claims, _signing_key(), algorithm=settings.jwt_algorithm)


def _granted_permissions(user: Dict[str, Any]) -> Set[str]:
    granted = set()
    for role in user.get("roles", []):
        granted.update(role.get("permissions", []))
    return granted


def authorize(roles_permitted: list, permissions_required: list):
    """L'endpoint decorato deve ricevere `user` come keyword (Depends(get_current_user))"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            user = kwargs.get("user")
            if user is None:
                raise _unauthenticated("Utente non autenticato")
            if not any(role.get("name") in roles_permitted for role in user.get("roles", [])):
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Utente non autorizzato.")
            missing = set(permissions_required) - _granted_permissions(user)
            if missing:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permessi insufficienti.")
            return await func(*args, **kwargs)

        return wrapper

    return decorator
