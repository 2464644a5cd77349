"""Scheduled-job route handlers, called by an external cron."""

import os
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.routes import internal_error
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import ReminderRunResponse
from sessionbook.services import reminder_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _authorized(request: Request) -> bool:
    cron_secret = os.getenv("CRON_SECRET")
    if not cron_secret:
        logger.warning("CRON_SECRET not configured; cron endpoint is unprotected")
        return True
    return request.headers.get("authorization") == f"Bearer {cron_secret}"


@router.get("/api/cron/session-reminders", response_model=ReminderRunResponse)
async def session_reminders(request: Request, session: AsyncSession = Depends(get_db_session)):
    """Send day-before reminder emails. Expected to be hit once a day."""
    if not _authorized(request):
        logger.warning("Unauthorized cron job access attempt")
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    try:
        return await reminder_service.send_session_reminders(session)
    except Exception as e:
        return internal_error(e, "Session reminder cron job error")
