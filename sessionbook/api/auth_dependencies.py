"""
Authentication dependencies for FastAPI routes.
"""

from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sessionbook.services import auth_service

ADMIN_COOKIE_NAME = "admin-token"

security = HTTPBearer(auto_error=False)


def get_admin_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Token from the Authorization header, falling back to the admin cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ADMIN_COOKIE_NAME)


async def require_admin(token: Optional[str] = Depends(get_admin_token)) -> dict:
    """
    Dependency that requires a valid admin session.

    Returns:
        The decoded token payload

    Raises:
        HTTPException: 401 if no token was sent or it is invalid/expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = auth_service.verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_optional_admin(token: Optional[str] = Depends(get_admin_token)) -> Optional[dict]:
    """Admin payload when a valid admin token was sent, otherwise None (public caller)."""
    if not token:
        return None
    return auth_service.verify_token(token)
