"""Registration route handlers: public signup/cancel and admin participant management."""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.auth_dependencies import require_admin
from sessionbook.api.routes import (
    internal_error,
    limiter,
    service_error,
    service_error_response,
    validation_error_response,
)
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import CancellationLookup, CancellationResponse, RegistrationCreate
from sessionbook.services import notification_service, registration_service
from sessionbook.services.errors import ServiceError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/sessions/{session_id}/registrations", status_code=201)
@limiter.limit("10/minute")
async def register_for_session(
    request: Request,
    session_id: int,
    payload: RegistrationCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """
    Register a player for a session.

    Returns 201 with the registration (including its cancellation token),
    404 for an unknown session, 409 for a duplicate player/email pair and
    400 when the session is full. Confirmation email and SMS go out in the
    background after the registration is saved.
    """
    try:
        registration, summary = await registration_service.register_for_session(
            session, session_id, payload.model_dump()
        )
    except ServiceError as e:
        await session.rollback()
        return service_error_response(e)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Registration error")

    # Send confirmations (non-blocking)
    asyncio.create_task(notification_service.notify_registration_created(registration, summary))
    return registration


@router.delete("/api/sessions/{session_id}/registrations", response_model=CancellationResponse)
async def cancel_registration_by_lookup(
    session_id: int,
    email: str = Query(default=""),
    player_name: str = Query(default="", alias="playerName"),
    session: AsyncSession = Depends(get_db_session),
):
    """Cancel a registration by parent email and player name (no token needed)."""
    try:
        lookup = CancellationLookup(email=email, player_name=player_name)
    except ValidationError as e:
        return validation_error_response(e.errors())

    try:
        result = await registration_service.cancel_by_lookup(
            session, session_id, lookup.email, lookup.player_name
        )
    except ServiceError as e:
        raise service_error(e)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Cancellation error")

    if result["session"] is not None:
        asyncio.create_task(
            notification_service.notify_registration_cancelled(result["registration"], result["session"])
        )
    return {
        "message": "Registration cancelled successfully",
        "player_name": result["registration"]["player_name"],
    }


@router.get("/api/registrations")
async def list_registrations(
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """All registrations, newest first (admin)."""
    try:
        return await registration_service.list_registrations(session)
    except Exception as e:
        return internal_error(e, "Error listing registrations")


@router.put("/api/registrations/{registration_id}")
async def update_registration(
    registration_id: int,
    payload: RegistrationCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Edit a participant's details (admin)."""
    try:
        return await registration_service.update_registration(
            session, registration_id, payload.model_dump()
        )
    except ServiceError as e:
        raise service_error(e)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error updating registration")


@router.delete("/api/registrations/{registration_id}")
async def delete_registration(
    registration_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a participant from a session (admin). No notification is sent."""
    try:
        await registration_service.delete_registration(session, registration_id)
    except ServiceError as e:
        raise service_error(e)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error deleting registration")
    return {"message": "Registration deleted successfully"}
