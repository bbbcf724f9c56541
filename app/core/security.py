# app/core/security.py
import os
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.security.api_key import APIKeyHeader

from app import auth
from app.schemas import AdminIdentity

ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")
_api_key_header = APIKeyHeader(name="x-admin-key", auto_error=False)
_bearer = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing admin credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def current_admin(
    api_key: Optional[str] = Depends(_api_key_header),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AdminIdentity:
    if ADMIN_API_KEY and api_key and api_key == ADMIN_API_KEY:
        return AdminIdentity(email=auth.ADMIN_EMAIL or "api-key", method="api_key")
    if credentials is not None:
        payload = auth.decode_admin_token(credentials.credentials)
        if payload:
            return AdminIdentity(email=payload.get("sub", ""), method="token")
    raise _unauthorized()


def require_admin(admin: AdminIdentity = Depends(current_admin)) -> None:
    return None
