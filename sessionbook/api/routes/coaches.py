"""Coach profile route handlers."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.database.db import get_db_session
from sessionbook.services import coach_service

router = APIRouter()


@router.get("/api/coaches")
async def list_coaches(session: AsyncSession = Depends(get_db_session)):
    """List coach profiles (public)."""
    return await coach_service.list_coaches(session)


@router.get("/api/coaches/{coach_id}")
async def get_coach(coach_id: int, session: AsyncSession = Depends(get_db_session)):
    """Get a coach profile with experience, certifications, reviews and availability."""
    coach = await coach_service.get_coach(session, coach_id)
    if coach is None:
        raise HTTPException(status_code=404, detail="Coach not found")
    return coach
