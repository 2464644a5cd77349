"""
Tests for day-before session reminders.
"""

import pytest
import pytz
from datetime import datetime
from unittest.mock import AsyncMock, patch

from sessionbook.database.models import Registration
from sessionbook.services import reminder_service
from sessionbook.utils import datetime_utils
from sessionbook.utils.datetime_utils import utcnow

UTC = pytz.UTC

# 1 PM on March 10 2024 in Los Angeles; "tomorrow" is March 11
NOW = datetime(2024, 3, 10, 20, 0, tzinfo=UTC)


def _register(db_session, training, name):
    db_session.add(
        Registration(
            session_id=training.id,
            player_name=name,
            parent_name="Jordan Smith",
            parent_email=f"{name.split()[0].lower()}@example.com",
            parent_phone="+12065551234",
            created_at=utcnow(),
        )
    )


@pytest.mark.asyncio
async def test_reminders_for_tomorrow_only(db_session, make_session):
    tomorrow = await make_session(date=datetime(2024, 3, 11, 12, tzinfo=UTC))
    hidden = await make_session(date=datetime(2024, 3, 11, 12, tzinfo=UTC), is_visible=False)
    later = await make_session(date=datetime(2024, 3, 12, 12, tzinfo=UTC))
    _register(db_session, tomorrow, "Alex Smith")
    _register(db_session, tomorrow, "Riley Jones")
    _register(db_session, hidden, "Sam Lee")
    _register(db_session, later, "Pat Kim")
    await db_session.commit()

    send = AsyncMock(side_effect=[True, False])
    with patch.object(reminder_service.email_service, "send_session_reminder", send):
        result = await reminder_service.send_session_reminders(db_session, now=NOW)

    assert result == {"success": True, "sessions_found": 1, "emails_sent": 1, "emails_failed": 1}
    reminded = sorted(call[0][0]["player_name"] for call in send.call_args_list)
    assert reminded == ["Alex Smith", "Riley Jones"]
    assert send.call_args_list[0][0][1]["id"] == tomorrow.id


@pytest.mark.asyncio
async def test_email_exception_counts_as_failure(db_session, make_session):
    training = await make_session(date=datetime(2024, 3, 11, 12, tzinfo=UTC))
    _register(db_session, training, "Alex Smith")
    await db_session.commit()

    send = AsyncMock(side_effect=Exception("SendGrid down"))
    with patch.object(reminder_service.email_service, "send_session_reminder", send):
        result = await reminder_service.send_session_reminders(db_session, now=NOW)

    assert result["emails_failed"] == 1
    assert result["emails_sent"] == 0


@pytest.mark.asyncio
async def test_no_sessions_tomorrow(db_session, make_session):
    await make_session(date=datetime(2024, 3, 20, 12, tzinfo=UTC))

    result = await reminder_service.send_session_reminders(db_session, now=NOW)

    assert result == {"success": True, "sessions_found": 0, "emails_sent": 0, "emails_failed": 0}


@pytest.mark.asyncio
async def test_tomorrow_follows_session_timezone(db_session, make_session, monkeypatch):
    """At NOW it is already March 11 in Tokyo, so tomorrow is March 12."""
    monkeypatch.setattr(datetime_utils, "SESSION_TIMEZONE", "Asia/Tokyo")
    await make_session(date=datetime(2024, 3, 11, 12, tzinfo=UTC))
    target = await make_session(date=datetime(2024, 3, 12, 12, tzinfo=UTC))
    _register(db_session, target, "Alex Smith")
    await db_session.commit()

    send = AsyncMock(return_value=True)
    with patch.object(reminder_service.email_service, "send_session_reminder", send):
        result = await reminder_service.send_session_reminders(db_session, now=NOW)

    assert result["sessions_found"] == 1
    assert send.call_args[0][1]["id"] == target.id
