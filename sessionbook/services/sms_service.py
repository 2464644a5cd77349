"""
SMS notifications.

Text messages are currently disabled: each send logs what it would have sent
(with personal data redacted) and returns False. Registration and
cancellation never depend on SMS succeeding.
"""

import re
import logging

from sessionbook.utils.security import sanitize_log_data

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def format_phone_number(phone: str) -> str:
    """
    Normalize a phone number to E.164.

    Examples:
        >>> format_phone_number("(206) 555-1234")
        '+12065551234'
        >>> format_phone_number("1-206-555-1234")
        '+12065551234'
    """
    phone = (phone or "").strip()
    cleaned = _NON_DIGITS.sub("", phone)
    if len(cleaned) == 10:
        return f"+1{cleaned}"
    return f"+{cleaned}"


def is_valid_phone_number(phone: str) -> bool:
    """Accept 10-digit US numbers, or 11 digits with a leading country code 1."""
    cleaned = _NON_DIGITS.sub("", phone or "")
    return len(cleaned) == 10 or (len(cleaned) == 11 and cleaned.startswith("1"))


def _log_disabled(kind: str, phone: str, player_name: str) -> bool:
    logger.info(
        f"SMS disabled: would have sent {kind} for {player_name}: "
        f"{sanitize_log_data({'parent_phone': phone})}"
    )
    return False


async def send_registration_sms(registration: dict, session: dict, cancellation_url: str) -> bool:
    """Registration confirmation text."""
    return _log_disabled(
        "registration confirmation", registration.get("parent_phone"), registration.get("player_name")
    )


async def send_cancellation_sms(registration: dict, session: dict) -> bool:
    """Cancellation confirmation text."""
    return _log_disabled(
        "cancellation confirmation", registration.get("parent_phone"), registration.get("player_name")
    )


async def send_reminder_sms(registration: dict, session: dict) -> bool:
    """Day-before reminder text."""
    return _log_disabled(
        "session reminder", registration.get("parent_phone"), registration.get("player_name")
    )
