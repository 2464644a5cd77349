"""
Training session store: listing, admin create/edit/delete, visibility and
the daily auto-archive of past sessions.
"""

import logging
from datetime import datetime, timedelta, date as date_type
from typing import Dict, List, Optional, Tuple

import pytz
from sqlalchemy import select, func, delete, update, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sessionbook.database.models import Coach, Registration, Session
from sessionbook.services import location_service
from sessionbook.services.errors import SessionNotFoundError
from sessionbook.utils.datetime_utils import (
    compute_token_expiry,
    ensure_utc,
    format_date_for_input,
    local_today,
    normalize_session_date,
)

logger = logging.getLogger(__name__)

# Field changes that registered parents are told about
NOTIFIABLE_FIELDS = ("date", "time", "location", "address", "focus", "price")


def token_expiry(training: Session) -> datetime:
    """When cancellation links for this session stop working."""
    try:
        return compute_token_expiry(training.date, training.time)
    except ValueError:
        # Unparseable time range: fall back to midnight at the start of the session day
        logger.warning(f"Could not parse time {training.time!r} for session {training.id}")
        return compute_token_expiry(training.date, "12:00 AM")


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None


def registration_to_dict(registration: Registration, include_token: bool = False) -> Dict:
    """Convert Registration model to dict."""
    result = {
        "id": registration.id,
        "session_id": registration.session_id,
        "player_name": registration.player_name,
        "player_age": registration.player_age,
        "parent_name": registration.parent_name,
        "parent_email": registration.parent_email,
        "parent_phone": registration.parent_phone,
        "emergency_contact": registration.emergency_contact,
        "emergency_phone": registration.emergency_phone,
        "medical_info": registration.medical_info,
        "experience": registration.experience,
        "special_notes": registration.special_notes,
        "token_expires_at": _isoformat(registration.token_expires_at),
        "created_at": _isoformat(registration.created_at),
    }
    if include_token:
        result["cancellation_token"] = registration.cancellation_token
    return result


def session_summary(training: Session) -> Dict:
    """The fields needed to describe a session to a parent (emails, cancel page)."""
    return {
        "id": training.id,
        "sport": training.sport,
        "age_group": training.age_group,
        "subgroup": training.subgroup,
        "date": _isoformat(training.date),
        "time": training.time,
        "location": training.location,
        "address": training.address,
        "price": training.price,
        "focus": training.focus,
    }


def session_to_dict(
    training: Session,
    registrations: Optional[List[Registration]] = None,
    coach: Optional[Coach] = None,
) -> Dict:
    """
    Convert Session model to dict.

    Args:
        training: Session row
        registrations: Loaded registrations to nest, or None to omit them
        coach: Loaded coach to nest, or None
    """
    result = session_summary(training)
    result.update(
        {
            "coach_id": training.coach_id,
            "max_participants": training.max_participants,
            "current_participants": training.current_participants,
            "is_visible": training.is_visible,
            "created_at": _isoformat(training.created_at),
            "updated_at": _isoformat(training.updated_at),
        }
    )
    if registrations is not None:
        result["registrations"] = [registration_to_dict(r) for r in registrations]
        result["current_participants"] = len(registrations)
    taken = result["current_participants"] or 0
    result["spots_remaining"] = max(0, training.max_participants - taken)
    result["is_full"] = taken >= training.max_participants
    if coach is not None:
        result["coach"] = {"id": coach.id, "name": coach.name, "image": coach.image}
    return result


async def count_registrations(session: AsyncSession, session_id: int) -> int:
    result = await session.execute(
        select(func.count(Registration.id)).where(Registration.session_id == session_id)
    )
    return result.scalar() or 0


async def _load_session(session: AsyncSession, session_id: int) -> Optional[Session]:
    result = await session.execute(
        select(Session)
        .where(Session.id == session_id)
        .options(selectinload(Session.registrations), selectinload(Session.coach))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_sessions(session: AsyncSession, include_hidden: bool = True) -> List[Dict]:
    """
    List sessions ordered by date, with registrations and coach nested.

    Args:
        session: Database session
        include_hidden: False for the public listing (visible sessions only)
    """
    query = (
        select(Session)
        .options(selectinload(Session.registrations), selectinload(Session.coach))
        .order_by(Session.date.asc(), Session.id.asc())
    )
    if not include_hidden:
        query = query.where(Session.is_visible.is_(True))

    result = await session.execute(query)
    return [
        session_to_dict(s, registrations=list(s.registrations), coach=s.coach)
        for s in result.scalars().all()
    ]


async def get_session(session: AsyncSession, session_id: int) -> Optional[Dict]:
    """Get one session with registrations and coach, or None if it doesn't exist."""
    training = await _load_session(session, session_id)
    if training is None:
        return None
    return session_to_dict(training, registrations=list(training.registrations), coach=training.coach)


async def _default_coach_id(session: AsyncSession) -> Optional[int]:
    result = await session.execute(select(Coach.id).order_by(Coach.id.asc()).limit(1))
    return result.scalar_one_or_none()


async def create_session(session: AsyncSession, data: Dict) -> Dict:
    """
    Schedule a new session.

    Args:
        session: Database session
        data: Validated SessionCreate fields

    Returns:
        The created session dict
    """
    coach_id = data.get("coach_id") or await _default_coach_id(session)

    training = Session(
        coach_id=coach_id,
        sport=data.get("sport") or "volleyball",
        age_group=data["age_group"],
        subgroup=data.get("subgroup"),
        date=normalize_session_date(data["date"]),
        time=data["time"],
        location=data["location"],
        address=data["address"],
        max_participants=data["max_participants"],
        current_participants=0,
        price=data.get("price") or 0,
        focus=data.get("focus"),
        is_visible=data.get("is_visible", True),
    )
    session.add(training)
    await location_service.touch_location(session, training.location, training.address)
    await session.commit()

    logger.info(f"Created session {training.id} ({training.age_group} on {format_date_for_input(training.date)})")
    return await get_session(session, training.id)


def _diff(training: Session, updates: Dict) -> List[str]:
    """Notifiable fields whose persisted value would change."""
    changes = []
    for field in NOTIFIABLE_FIELDS:
        if field not in updates:
            continue
        new_value = updates[field]
        old_value = getattr(training, field)
        if field == "date":
            if ensure_utc(old_value) != ensure_utc(new_value):
                changes.append(field)
        elif field == "price":
            if float(old_value or 0) != float(new_value or 0):
                changes.append(field)
        elif (old_value or None) != (new_value or None):
            changes.append(field)
    return changes


async def update_session(
    session: AsyncSession, session_id: int, data: Dict
) -> Tuple[Dict, List[str]]:
    """
    Apply a partial edit to a session.

    Args:
        session: Database session
        session_id: Session to edit
        data: SessionUpdate fields that were explicitly sent

    Returns:
        (updated session dict, list of changed notifiable fields)

    Raises:
        SessionNotFoundError: If the session doesn't exist
    """
    training = await _load_session(session, session_id)
    if training is None:
        raise SessionNotFoundError()

    updates = dict(data)
    if updates.get("date") is not None:
        updates["date"] = normalize_session_date(updates["date"])
    for required in ("sport", "age_group", "date", "time", "location", "address",
                     "max_participants", "price", "is_visible"):
        # Non-nullable columns: an explicit null means "leave unchanged"
        if required in updates and updates[required] is None:
            del updates[required]

    changes = _diff(training, updates)

    for field, value in updates.items():
        setattr(training, field, value)
    training.current_participants = await count_registrations(session, session_id)

    # Moving the session moves the cancellation cutoff with it
    if "date" in changes or "time" in changes:
        expires_at = token_expiry(training)
        for registration in training.registrations:
            registration.token_expires_at = expires_at

    if "location" in updates or "address" in updates:
        await location_service.touch_location(session, training.location, training.address)

    await session.commit()

    if changes:
        logger.info(f"Session {session_id} updated; changed fields: {', '.join(changes)}")
    updated = await get_session(session, session_id)
    return updated, changes


async def set_visibility(session: AsyncSession, session_id: int, is_visible: bool) -> Dict:
    """
    Show or hide a session.

    Raises:
        SessionNotFoundError: If the session doesn't exist
    """
    result = await session.execute(select(Session).where(Session.id == session_id))
    training = result.scalar_one_or_none()
    if training is None:
        raise SessionNotFoundError()
    training.is_visible = is_visible
    await session.commit()
    return await get_session(session, session_id)


async def delete_session(session: AsyncSession, session_id: int) -> bool:
    """
    Delete a session and all of its registrations.

    Returns:
        False if the session doesn't exist
    """
    result = await session.execute(select(Session.id).where(Session.id == session_id))
    if result.scalar_one_or_none() is None:
        return False

    await session.execute(delete(Registration).where(Registration.session_id == session_id))
    await session.execute(delete(Session).where(Session.id == session_id))
    await session.commit()
    logger.info(f"Deleted session {session_id}")
    return True


async def archive_past_sessions(session: AsyncSession, today: Optional[date_type] = None) -> int:
    """
    Hide visible sessions dated before yesterday.

    Args:
        session: Database session
        today: Current date in the session timezone (defaults to now)

    Returns:
        Number of sessions archived
    """
    today = today or local_today()
    yesterday = today - timedelta(days=1)
    cutoff = datetime(yesterday.year, yesterday.month, yesterday.day, tzinfo=pytz.UTC)

    result = await session.execute(
        update(Session)
        .where(and_(Session.is_visible.is_(True), Session.date < cutoff))
        .values(is_visible=False)
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    archived = result.rowcount or 0
    if archived:
        logger.info(f"Archived {archived} session(s) dated before {yesterday.isoformat()}")
    return archived
