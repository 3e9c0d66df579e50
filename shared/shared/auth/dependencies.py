"""
Bearer-token dependencies shared by every service.

Token issuance lives in the external auth service; here we only decode the
access token and turn its claims into a ``CurrentUser``.
"""
from functools import lru_cache

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shared.auth.config import AuthSettings
from shared.models.user import CurrentUser

http_bearer = HTTPBearer(auto_error=False)


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings()


def _decode_token(token: str, settings: AuthSettings) -> dict:
    options = {"verify_aud": bool(settings.audience), "verify_iss": bool(settings.issuer)}
    return jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer or None,
        audience=settings.audience or None,
        options=options,
    )


def _payload_to_user(payload: dict) -> CurrentUser:
    user_id = payload.get("sub")
    if user_id is None:
        raise ValueError("Missing sub in token")
    return CurrentUser(id=int(user_id), username=payload.get("username") or "")


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: AuthSettings = Depends(get_auth_settings),
) -> CurrentUser | None:
    if not credentials or not credentials.credentials:
        return None
    try:
        return _payload_to_user(_decode_token(credentials.credentials, settings))
    except (jwt.PyJWTError, ValueError, KeyError):
        return None


async def get_current_user_required(
    user: CurrentUser | None = Depends(get_current_user_optional),
) -> CurrentUser:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
