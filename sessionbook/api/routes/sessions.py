"""Training session route handlers."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.auth_dependencies import get_optional_admin, require_admin
from sessionbook.api.routes import internal_error, service_error
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import SessionCreate, SessionUpdate, SessionVisibilityUpdate
from sessionbook.services import notification_service, session_service
from sessionbook.services.errors import ServiceError

logger = logging.getLogger(__name__)
router = APIRouter()

# What the public listing may show about each registrant
PUBLIC_REGISTRATION_FIELDS = ("id", "session_id", "player_name", "created_at")


def _public_view(training: dict) -> dict:
    """Drop parent contact and medical details for callers that aren't the admin."""
    result = dict(training)
    result["registrations"] = [
        {field: r.get(field) for field in PUBLIC_REGISTRATION_FIELDS}
        for r in training.get("registrations", [])
    ]
    return result


@router.get("/api/sessions")
async def list_sessions(
    visible_only: bool = False,
    admin: Optional[dict] = Depends(get_optional_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    List sessions ordered by date, with registrations nested.

    Public callers only ever see visible sessions and registrant names;
    the admin sees everything unless visible_only=true.
    """
    try:
        include_hidden = admin is not None and not visible_only
        sessions = await session_service.list_sessions(session, include_hidden=include_hidden)
        if admin is None:
            sessions = [_public_view(s) for s in sessions]
        return sessions
    except Exception as e:
        return internal_error(e, "Error listing sessions")


@router.post("/api/sessions", status_code=201)
async def create_session(
    payload: SessionCreate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Schedule a new session (admin)."""
    try:
        return await session_service.create_session(session, payload.model_dump())
    except ValueError as e:
        await session.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error creating session")


@router.get("/api/sessions/{session_id}")
async def get_session(
    session_id: int,
    admin: Optional[dict] = Depends(get_optional_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Get one session; 404 if it doesn't exist (or is hidden, for the public)."""
    training = await session_service.get_session(session, session_id)
    if training is None or (admin is None and not training["is_visible"]):
        raise HTTPException(status_code=404, detail="Session not found")
    return training if admin is not None else _public_view(training)


@router.patch("/api/sessions/{session_id}")
async def update_session(
    session_id: int,
    payload: SessionUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Edit a session (admin).

    If the date, time, location, address, focus or price changed, every
    registered parent is emailed the new details in the background.
    """
    try:
        updated, changes = await session_service.update_session(
            session, session_id, payload.model_dump(exclude_unset=True)
        )
    except ServiceError as e:
        raise service_error(e)
    except ValueError as e:
        await session.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error updating session")

    if changes and updated["registrations"]:
        # Notify participants (non-blocking)
        asyncio.create_task(
            notification_service.notify_session_updated(
                updated, updated["registrations"], changes
            )
        )
    return {**updated, "changes": changes}


@router.put("/api/sessions/{session_id}/visibility")
async def set_session_visibility(
    session_id: int,
    payload: SessionVisibilityUpdate,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Show or hide (archive) a session (admin)."""
    try:
        return await session_service.set_visibility(session, session_id, payload.is_visible)
    except ServiceError as e:
        raise service_error(e)


@router.delete("/api/sessions/{session_id}")
async def delete_session(
    session_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a session and its registrations (admin)."""
    try:
        deleted = await session_service.delete_session(session, session_id)
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error deleting session")
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session deleted successfully"}
