"""Location cache route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.api.auth_dependencies import require_admin
from sessionbook.api.routes import internal_error
from sessionbook.database.db import get_db_session
from sessionbook.models.schemas import LocationCreate
from sessionbook.services import location_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/locations")
async def list_locations(session: AsyncSession = Depends(get_db_session)):
    """List cached locations, most recently used first (public)."""
    try:
        return await location_service.list_locations(session)
    except Exception as e:
        return internal_error(e, "Error listing locations")


@router.post("/api/locations", status_code=201)
async def create_location(
    payload: LocationCreate,
    response: Response,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Add a location (admin).

    A location with the same name (case-insensitive) is updated instead and
    the response status is 200.
    """
    try:
        location, created = await location_service.upsert_location(
            session, payload.name, payload.address
        )
    except Exception as e:
        await session.rollback()
        return internal_error(e, "Error saving location")
    if not created:
        response.status_code = 200
    return location


@router.delete("/api/locations/{location_id}")
async def delete_location(
    location_id: int,
    admin: dict = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a location from the cache (admin)."""
    deleted = await location_service.delete_location(session, location_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Location not found")
    return {"message": "Location deleted successfully"}
