"""
Notification dispatch: fans a workflow event out to email and SMS.

Routes schedule these coroutines with asyncio.create_task() after the
database transaction has committed. Each channel is attempted independently;
a failure in one never stops the other, and nothing here raises.
"""

import logging
from typing import Dict, List

from sessionbook.services import email_service, sms_service
from sessionbook.utils.security import sanitize_log_data

logger = logging.getLogger(__name__)


async def _attempt(channel: str, coro) -> bool:
    try:
        return bool(await coro)
    except Exception as e:
        logger.error(f"{channel} notification failed: {sanitize_log_data(e)}")
        return False


async def notify_registration_created(registration: Dict, session: Dict) -> Dict[str, bool]:
    """Send the registration confirmation email and SMS."""
    cancellation_url = email_service.build_cancellation_url(registration["cancellation_token"])
    results = {
        "email": await _attempt(
            "Email",
            email_service.send_registration_confirmation(registration, session, cancellation_url),
        ),
        "sms": await _attempt(
            "SMS", sms_service.send_registration_sms(registration, session, cancellation_url)
        ),
    }
    logger.info(
        f"Registration {registration.get('id')} notifications: "
        f"email={'sent' if results['email'] else 'failed'}, "
        f"sms={'sent' if results['sms'] else 'not sent'}"
    )
    return results


async def notify_registration_cancelled(registration: Dict, session: Dict) -> Dict[str, bool]:
    """Send the cancellation confirmation email and SMS."""
    results = {
        "email": await _attempt(
            "Email", email_service.send_cancellation_confirmation(registration, session)
        ),
        "sms": await _attempt("SMS", sms_service.send_cancellation_sms(registration, session)),
    }
    logger.info(
        f"Cancellation notifications for {registration.get('player_name')}: "
        f"email={'sent' if results['email'] else 'failed'}, "
        f"sms={'sent' if results['sms'] else 'not sent'}"
    )
    return results


async def notify_session_updated(
    session: Dict, registrations: List[Dict], changes: List[str]
) -> Dict[str, int]:
    """
    Email every registered parent that the session changed.

    Args:
        session: Session dict with the new values
        registrations: Registrations for the session
        changes: Changed field names

    Returns:
        {"sent": n, "failed": m}
    """
    counts = {"sent": 0, "failed": 0}
    if not changes or not registrations:
        return counts

    for registration in registrations:
        ok = await _attempt(
            "Email", email_service.send_session_updated(registration, session, changes)
        )
        counts["sent" if ok else "failed"] += 1

    logger.info(
        f"Session {session.get('id')} update notifications ({', '.join(changes)}): "
        f"{counts['sent']} sent, {counts['failed']} failed"
    )
    return counts
