"""
Registration workflow: signup with capacity and duplicate checks, token-based
and manual cancellation, and admin participant management.

Every mutation writes the registration row and the session's cached
participant count in one transaction. Notifications are not sent from here;
routes schedule them once the commit has succeeded.
"""

import logging
import secrets
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sessionbook.database.models import Registration, Session
from sessionbook.services.errors import (
    CancellationExpiredError,
    DuplicateRegistrationError,
    RegistrationNotFoundError,
    SessionFullError,
    SessionNotFoundError,
)
from sessionbook.services.session_service import (
    count_registrations,
    registration_to_dict,
    session_summary,
    token_expiry,
)
from sessionbook.utils.datetime_utils import (
    ensure_utc,
    format_date_for_input,
    utcnow,
)

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = (
    "Invalid cancellation link. The registration may have already been cancelled "
    "or the link is incorrect."
)
LOOKUP_NOT_FOUND_MESSAGE = "Registration not found. Please check your email and player name."

# Columns an admin edit (or a signup) may write
REGISTRATION_FIELDS = (
    "player_name",
    "player_age",
    "parent_name",
    "parent_email",
    "parent_phone",
    "emergency_contact",
    "emergency_phone",
    "medical_info",
    "experience",
    "special_notes",
)


def generate_cancellation_token() -> str:
    """64 hex chars from 32 random bytes."""
    return secrets.token_hex(32)


def _clean(data: Dict) -> Dict:
    cleaned = {field: data.get(field) for field in REGISTRATION_FIELDS}
    for field in ("player_name", "parent_name", "parent_email"):
        cleaned[field] = (cleaned[field] or "").strip()
    cleaned["parent_email"] = cleaned["parent_email"].lower()
    for field in ("emergency_contact", "emergency_phone", "medical_info", "experience", "special_notes"):
        cleaned[field] = cleaned[field] or None
    return cleaned


async def _lock_session(session: AsyncSession, session_id: int) -> Optional[Session]:
    """Select the session row FOR UPDATE so concurrent signups serialize on it."""
    result = await session.execute(
        select(Session).where(Session.id == session_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def register_for_session(
    session: AsyncSession, session_id: int, data: Dict
) -> Tuple[Dict, Dict]:
    """
    Register a player for a session.

    Args:
        session: Database session
        session_id: Session to join
        data: Validated RegistrationCreate fields

    Returns:
        (registration dict including its cancellation token, session summary)

    Raises:
        SessionNotFoundError: If the session doesn't exist
        DuplicateRegistrationError: If this player/email pair is already registered
        SessionFullError: If the session is at capacity
    """
    fields = _clean(data)

    training = await _lock_session(session, session_id)
    if training is None:
        raise SessionNotFoundError()

    # Duplicate first, so a parent re-submitting for a now-full session hears
    # that they're already in rather than that it's full
    duplicate = await session.execute(
        select(Registration.id).where(
            Registration.session_id == session_id,
            func.lower(Registration.parent_email) == fields["parent_email"],
            func.lower(Registration.player_name) == fields["player_name"].lower(),
        )
    )
    if duplicate.first() is not None:
        raise DuplicateRegistrationError(fields["player_name"], fields["parent_email"])

    current = await count_registrations(session, session_id)
    if current >= training.max_participants:
        raise SessionFullError()

    registration = Registration(
        session_id=session_id,
        cancellation_token=generate_cancellation_token(),
        token_expires_at=token_expiry(training),
        created_at=utcnow(),
        **fields,
    )
    session.add(registration)
    training.current_participants = current + 1
    await session.commit()
    await session.refresh(registration)

    logger.info(f"Registration {registration.id} created for session {session_id}")
    return registration_to_dict(registration, include_token=True), session_summary(training)


async def _get_by_token(session: AsyncSession, token: str) -> Registration:
    if not token:
        raise RegistrationNotFoundError(INVALID_TOKEN_MESSAGE)
    result = await session.execute(
        select(Registration)
        .where(Registration.cancellation_token == token)
        .options(selectinload(Registration.session))
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise RegistrationNotFoundError(INVALID_TOKEN_MESSAGE)

    expires_at = ensure_utc(registration.token_expires_at)
    if expires_at is not None and utcnow() > expires_at:
        raise CancellationExpiredError()
    return registration


async def get_registration_by_token(session: AsyncSession, token: str) -> Dict:
    """
    Look up a registration for the cancel page.

    Raises:
        RegistrationNotFoundError: Unknown or already-used token
        CancellationExpiredError: Less than 24 hours before the session
    """
    registration = await _get_by_token(session, token)
    expires_at = ensure_utc(registration.token_expires_at)
    # The link can be forwarded; contact and medical details are not shown
    return {
        "id": registration.id,
        "player_name": registration.player_name,
        "parent_name": registration.parent_name,
        "parent_email": registration.parent_email,
        "token_expires_at": expires_at.isoformat() if expires_at else None,
        "session": session_summary(registration.session),
    }


async def _delete_and_decrement(session: AsyncSession, registration: Registration) -> Dict:
    """Delete a registration and decrement its session's count (never below 0) in one commit."""
    training = await _lock_session(session, registration.session_id)
    details = registration_to_dict(registration)
    summary = session_summary(training) if training is not None else None

    await session.execute(delete(Registration).where(Registration.id == registration.id))
    if training is not None:
        training.current_participants = max(0, (training.current_participants or 0) - 1)
    await session.commit()

    logger.info(f"Registration {registration.id} cancelled for session {registration.session_id}")
    return {"registration": details, "session": summary}


async def cancel_by_token(session: AsyncSession, token: str) -> Dict:
    """
    Cancel using the emailed token. The token dies with the registration, so a
    second call raises RegistrationNotFoundError.

    Returns:
        {"registration": ..., "session": ...} for the cancelled registration
    """
    registration = await _get_by_token(session, token)
    return await _delete_and_decrement(session, registration)


async def cancel_by_lookup(
    session: AsyncSession, session_id: int, email: str, player_name: str
) -> Dict:
    """
    Cancel by session + parent email + player name (case-insensitive).

    Also matches names stored with one trailing space by older signups.

    Raises:
        RegistrationNotFoundError: If nothing matches
    """
    name = player_name.strip().lower()
    result = await session.execute(
        select(Registration)
        .where(
            Registration.session_id == session_id,
            func.lower(Registration.parent_email) == email.strip().lower(),
            func.lower(Registration.player_name).in_([name, f"{name} "]),
        )
        .order_by(Registration.id.asc())
        .limit(1)
    )
    registration = result.scalar_one_or_none()
    if registration is None:
        raise RegistrationNotFoundError(LOOKUP_NOT_FOUND_MESSAGE)
    return await _delete_and_decrement(session, registration)


async def delete_registration(session: AsyncSession, registration_id: int) -> Dict:
    """
    Admin removal of a participant.

    Raises:
        RegistrationNotFoundError: If the registration doesn't exist
    """
    result = await session.execute(select(Registration).where(Registration.id == registration_id))
    registration = result.scalar_one_or_none()
    if registration is None:
        raise RegistrationNotFoundError()
    return await _delete_and_decrement(session, registration)


async def list_registrations(session: AsyncSession) -> List[Dict]:
    """All registrations, newest first, each with a short session summary."""
    result = await session.execute(
        select(Registration)
        .options(selectinload(Registration.session))
        .order_by(Registration.created_at.desc(), Registration.id.desc())
    )
    registrations = []
    for registration in result.scalars().all():
        item = registration_to_dict(registration)
        training = registration.session
        item["session"] = {
            "id": training.id,
            "sport": training.sport,
            "age_group": training.age_group,
            "subgroup": training.subgroup,
            "date": format_date_for_input(training.date),
            "time": training.time,
            "location": training.location,
        }
        registrations.append(item)
    return registrations


async def update_registration(session: AsyncSession, registration_id: int, data: Dict) -> Dict:
    """
    Admin edit of a participant's details. The participant count and
    cancellation token are left alone.

    Raises:
        RegistrationNotFoundError: If the registration doesn't exist
    """
    result = await session.execute(select(Registration).where(Registration.id == registration_id))
    registration = result.scalar_one_or_none()
    if registration is None:
        raise RegistrationNotFoundError()

    for field, value in _clean(data).items():
        setattr(registration, field, value)
    await session.commit()

    logger.info(f"Registration {registration_id} updated")
    return registration_to_dict(registration)
