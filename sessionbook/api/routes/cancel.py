"""Token-based cancellation route handlers (links from confirmation emails)."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.routes import internal_error, service_error
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import CancellationDetailsResponse, CancellationResponse
from sessionbook.services import notification_service, registration_service
from sessionbook.services.errors import ServiceError
from sessionbook.utils.datetime_utils import format_session_date

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/cancel/{token}", response_model=CancellationDetailsResponse)
async def get_cancellation_details(token: str, session: AsyncSession = Depends(get_db_session)):
    """
    Show what a cancellation link would cancel.

    404 if the token is unknown or already used, 410 once the 24-hour cutoff
    has passed.
    """
    try:
        return await registration_service.get_registration_by_token(session, token)
    except ServiceError as e:
        raise service_error(e)


@router.delete("/api/cancel/{token}", response_model=CancellationResponse)
async def cancel_by_token(token: str, session: AsyncSession = Depends(get_db_session)):
    """Cancel the registration a link belongs to. The link only works once."""
    try:
        result = await registration_service.cancel_by_token(session, token)
    except ServiceError as e:
        raise service_error(e)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Cancellation error")

    registration, summary = result["registration"], result["session"]
    session_details = None
    if summary is not None:
        asyncio.create_task(notification_service.notify_registration_cancelled(registration, summary))
        session_details = {
            "date": format_session_date(summary["date"]),
            "time": summary["time"],
            "location": summary["location"],
        }

    return {
        "message": "Registration cancelled successfully",
        "player_name": registration["player_name"],
        "session_details": session_details,
    }
