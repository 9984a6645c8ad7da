# app/api/v1/deps.py

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt

from app.core.config import settings
from app.db.schemas import AuthUser
from app.utils.exceptions import NotAuthenticatedError
from app.utils.helpers import parse_uuid

# auto_error=False so a missing header yields our 401 body, not FastAPI's 403
security = HTTPBearer(auto_error=False)

# ============================================================================
# JWT Dependency
# ============================================================================

def decode_access_token(token: str) -> AuthUser:
    """
    Verify an access token issued by the hosted auth provider.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except jwt.PyJWTError:
        raise NotAuthenticatedError()

    user_id = parse_uuid(payload.get("sub"))
    if user_id is None:
        raise NotAuthenticatedError()

    return AuthUser(
        id=user_id,
        email=payload.get("email"),
        user_metadata=payload.get("user_metadata") or {},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthUser:
    """
    Validate bearer token and return the authenticated identity.
    """
    if credentials is None or not credentials.credentials:
        raise NotAuthenticatedError()
    return decode_access_token(credentials.credentials)
