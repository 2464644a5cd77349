"""
Day-before session reminders, triggered once a day by an external cron job.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

import pytz
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sessionbook.database.models import Session
from sessionbook.services import email_service, sms_service
from sessionbook.services.session_service import registration_to_dict, session_summary
from sessionbook.utils.datetime_utils import local_today
from sessionbook.utils.security import sanitize_log_data

logger = logging.getLogger(__name__)


async def send_session_reminders(session: AsyncSession, now: Optional[datetime] = None) -> Dict:
    """
    Email every parent registered for a visible session happening tomorrow.

    Args:
        session: Database session
        now: Current time (defaults to the real clock)

    Returns:
        {"success", "sessions_found", "emails_sent", "emails_failed"}
    """
    # "Tomorrow" on the session timezone's calendar
    tomorrow = local_today(now=now) + timedelta(days=1)
    start = datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=pytz.UTC)
    end = start + timedelta(days=1)
    logger.info(f"Checking for sessions between {start.isoformat()} and {end.isoformat()}")

    result = await session.execute(
        select(Session)
        .where(and_(Session.date >= start, Session.date < end, Session.is_visible.is_(True)))
        .options(selectinload(Session.registrations))
        .order_by(Session.date.asc())
    )
    trainings = result.scalars().all()
    logger.info(f"Found {len(trainings)} session(s) tomorrow")

    emails_sent = 0
    emails_failed = 0
    for training in trainings:
        summary = session_summary(training)
        for registration in training.registrations:
            details = registration_to_dict(registration)
            try:
                ok = await email_service.send_session_reminder(details, summary)
            except Exception as e:
                logger.error(f"Reminder email error: {sanitize_log_data(e)}")
                ok = False
            if ok:
                emails_sent += 1
            else:
                emails_failed += 1
                logger.error(f"Failed to send reminder for registration {registration.id}")
            await sms_service.send_reminder_sms(details, summary)

    logger.info(f"Session reminders completed: {emails_sent} sent, {emails_failed} failed")
    return {
        "success": True,
        "sessions_found": len(trainings),
        "emails_sent": emails_sent,
        "emails_failed": emails_failed,
    }
