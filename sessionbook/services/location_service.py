"""
Location cache: venue names and addresses the admin has used before, so the
session form can offer them again (most recently used first).
"""
import logging
from typing import Optional, Dict, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete
from sessionbook.database.models import Location
from sessionbook.utils.datetime_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def location_to_dict(location: Location) -> Dict:
    """Convert Location model to dict."""
    last_used = ensure_utc(location.last_used)
    created_at = ensure_utc(location.created_at)
    return {
        "id": location.id,
        "name": location.name,
        "address": location.address,
        "last_used": last_used.isoformat() if last_used else None,
        "created_at": created_at.isoformat() if created_at else None,
    }


async def _find_by_name(session: AsyncSession, name: str) -> Optional[Location]:
    result = await session.execute(
        select(Location)
        .where(func.lower(Location.name) == name.strip().lower())
        .order_by(Location.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def touch_location(session: AsyncSession, name: str, address: str) -> Tuple[Location, bool]:
    """
    Insert or refresh a cached location without committing.

    Names match case-insensitively; a match gets the new address and a fresh
    last_used timestamp.

    Returns:
        (location, created)
    """
    now = utcnow()
    location = await _find_by_name(session, name)
    if location is not None:
        location.address = address
        location.last_used = now
        await session.flush()
        return location, False

    location = Location(name=name.strip(), address=address, last_used=now, created_at=now)
    session.add(location)
    await session.flush()
    return location, True


async def list_locations(session: AsyncSession) -> List[Dict]:
    """All cached locations, most recently used first."""
    result = await session.execute(
        select(Location).order_by(Location.last_used.desc(), Location.id.desc())
    )
    return [location_to_dict(location) for location in result.scalars().all()]


async def upsert_location(session: AsyncSession, name: str, address: str) -> Tuple[Dict, bool]:
    """
    Create a location, or update the address of one with the same name.

    Returns:
        (location dict, created) - created is False when an existing entry was updated
    """
    location, created = await touch_location(session, name, address)
    await session.commit()
    logger.info(f"{'Created' if created else 'Updated'} location {location.id} ({location.name})")
    return location_to_dict(location), created


async def delete_location(session: AsyncSession, location_id: int) -> bool:
    """
    Remove a location from the cache. Sessions keep their own copy of the
    name and address, so nothing else changes.

    Returns:
        False if the location doesn't exist
    """
    result = await session.execute(select(Location.id).where(Location.id == location_id))
    if result.scalar_one_or_none() is None:
        return False
    await session.execute(delete(Location).where(Location.id == location_id))
    await session.commit()
    return True
