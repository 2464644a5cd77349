"""Admin session (login/logout) and maintenance route handlers."""

import os
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.auth_dependencies import ADMIN_COOKIE_NAME, require_admin
from sessionbook.api.routes import service_error
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import AdminLoginRequest, AdminLoginResponse, ArchiveRunResponse, MessageResponse
from sessionbook.services import auth_service, rate_limiting_service, session_service
from sessionbook.services.errors import AdminNotConfiguredError

logger = logging.getLogger(__name__)
router = APIRouter()


def _cookie_secure() -> bool:
    default = "true" if os.getenv("ENV", "").lower() == "production" else "false"
    return os.getenv("COOKIE_SECURE", default).lower() in ("true", "1", "yes")


@router.post("/api/admin/login", response_model=AdminLoginResponse)
async def admin_login(payload: AdminLoginRequest, request: Request, response: Response):
    """
    Log in as the admin.

    Sets an httpOnly admin-token cookie and also returns the token for
    clients that prefer a Bearer header. Limited to 5 attempts per 15
    minutes per IP.
    """
    client_ip = rate_limiting_service.get_client_ip(request)
    rate_limiting_service.check_login_rate_limit(client_ip)

    try:
        valid = auth_service.authenticate_admin(payload.password)
    except AdminNotConfiguredError as e:
        raise service_error(e)

    if not valid:
        logger.warning(f"Failed admin login attempt from {client_ip}")
        raise HTTPException(status_code=401, detail="Invalid password")

    rate_limiting_service.clear_login_rate_limit(client_ip)
    token = auth_service.create_admin_token()
    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=token,
        max_age=auth_service.SESSION_TIMEOUT_SECONDS,
        httponly=True,
        secure=_cookie_secure(),
        samesite="strict",
        path="/",
    )
    logger.info(f"Admin logged in from {client_ip}")
    return {
        "success": True,
        "message": "Login successful",
        "expires_in": auth_service.SESSION_TIMEOUT_SECONDS,
        "token": token,
    }


@router.post("/api/admin/logout", response_model=MessageResponse)
async def admin_logout(response: Response):
    """Clear the admin cookie."""
    response.delete_cookie(key=ADMIN_COOKIE_NAME, path="/")
    return {"success": True, "message": "Logged out"}


@router.get("/api/admin/verify")
async def verify_admin(admin: dict = Depends(require_admin)):
    """Check that the caller holds a valid admin session."""
    return {"authenticated": True, "expires_at": admin.get("exp")}


@router.post("/api/admin/archive-sessions", response_model=ArchiveRunResponse)
async def archive_sessions(
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Run the past-session archive sweep now instead of waiting for the worker."""
    archived = await session_service.archive_past_sessions(session)
    return {"archived": archived}
