"""
Tests for the session store: create/edit/delete, change detection for
parent notifications, and the past-session archive sweep.
"""

import pytest
import pytz
from datetime import date, datetime, timedelta
from sqlalchemy import select, func

from sessionbook.database.models import Location, Registration, Session
from sessionbook.models.schemas import SessionCreate, SessionUpdate
from sessionbook.services import coach_service, session_service
from sessionbook.services.errors import SessionNotFoundError
from sessionbook.utils.datetime_utils import utcnow

UTC = pytz.UTC


def _create_data(**overrides) -> dict:
    payload = {
        "ageGroup": "U14",
        "subgroup": "Advanced",
        "date": "2030-06-01",
        "time": "1:00 PM - 2:30 PM",
        "location": "Community Center Gym",
        "address": "123 Main St",
        "maxParticipants": 10,
        "price": 40,
        "focus": "Passing",
    }
    payload.update(overrides)
    return SessionCreate(**payload).model_dump()


def _update_data(**fields) -> dict:
    return SessionUpdate(**fields).model_dump(exclude_unset=True)


def _add_registration(db_session, training, name="Alex Smith", email="parent@example.com"):
    db_session.add(
        Registration(
            session_id=training.id,
            player_name=name,
            parent_name="Jordan Smith",
            parent_email=email,
            parent_phone="+12065551234",
            created_at=utcnow(),
        )
    )


# ---------------------------------------------------------------------------
# Create / read
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_session(db_session):
    created = await session_service.create_session(db_session, _create_data())

    assert created["id"] is not None
    assert created["sport"] == "volleyball"
    assert created["date"] == "2030-06-01T12:00:00+00:00"
    assert created["current_participants"] == 0
    assert created["registrations"] == []
    assert created["is_visible"] is True
    assert created["coach_id"] is None


@pytest.mark.asyncio
async def test_create_session_uses_default_coach(db_session):
    await coach_service.seed_default_coach(db_session)
    created = await session_service.create_session(db_session, _create_data())

    assert created["coach_id"] is not None
    assert created["coach"]["name"] == coach_service.DEFAULT_COACH["name"]


@pytest.mark.asyncio
async def test_create_session_caches_location(db_session):
    await session_service.create_session(db_session, _create_data())
    await session_service.create_session(
        db_session, _create_data(location="community center gym", address="456 Oak Ave")
    )

    result = await db_session.execute(select(Location))
    locations = result.scalars().all()
    assert len(locations) == 1
    assert locations[0].address == "456 Oak Ave"


@pytest.mark.asyncio
async def test_list_sessions_ordered_by_date(db_session, make_session):
    later = await make_session(date=datetime(2030, 7, 1, 12, tzinfo=UTC))
    earlier = await make_session(date=datetime(2030, 6, 1, 12, tzinfo=UTC))
    hidden = await make_session(date=datetime(2030, 6, 15, 12, tzinfo=UTC), is_visible=False)

    all_sessions = await session_service.list_sessions(db_session)
    assert [s["id"] for s in all_sessions] == [earlier.id, hidden.id, later.id]

    visible = await session_service.list_sessions(db_session, include_hidden=False)
    assert [s["id"] for s in visible] == [earlier.id, later.id]


@pytest.mark.asyncio
async def test_participant_count_comes_from_registrations(db_session, make_session):
    training = await make_session(current_participants=5)
    _add_registration(db_session, training)
    await db_session.commit()

    result = await session_service.get_session(db_session, training.id)

    assert result["current_participants"] == 1
    assert len(result["registrations"]) == 1
    assert result["spots_remaining"] == 7
    assert result["is_full"] is False


@pytest.mark.asyncio
async def test_full_session_state(db_session, make_session):
    training = await make_session(max_participants=1)
    _add_registration(db_session, training)
    await db_session.commit()

    result = await session_service.get_session(db_session, training.id)

    assert result["spots_remaining"] == 0
    assert result["is_full"] is True


@pytest.mark.asyncio
async def test_get_missing_session(db_session):
    assert await session_service.get_session(db_session, 9999) is None


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_update_reports_changed_fields(db_session, make_session):
    training = await make_session()

    updated, changes = await session_service.update_session(
        db_session, training.id, _update_data(time="5:00 PM - 6:30 PM", price=60, ageGroup="U13")
    )

    assert changes == ["time", "price"]
    assert updated["time"] == "5:00 PM - 6:30 PM"
    assert updated["price"] == 60
    assert updated["age_group"] == "U13"


@pytest.mark.asyncio
async def test_update_same_values_reports_nothing(db_session, make_session):
    training = await make_session()

    _, changes = await session_service.update_session(
        db_session,
        training.id,
        _update_data(time=training.time, price=50, location=training.location, maxParticipants=12),
    )

    assert changes == []


@pytest.mark.asyncio
async def test_update_date(db_session, make_session):
    training = await make_session(date=datetime(2030, 6, 1, 12, tzinfo=UTC))

    updated, changes = await session_service.update_session(
        db_session, training.id, _update_data(date="2030-06-02")
    )

    assert changes == ["date"]
    assert updated["date"] == "2030-06-02T12:00:00+00:00"


@pytest.mark.asyncio
async def test_update_null_leaves_required_field(db_session, make_session):
    training = await make_session()

    updated, changes = await session_service.update_session(
        db_session, training.id, {"location": None, "focus": None}
    )

    assert updated["location"] == "Community Center Gym"
    assert updated["focus"] is None
    assert changes == ["focus"]


@pytest.mark.asyncio
async def test_update_resyncs_participant_count(db_session, make_session):
    training = await make_session(current_participants=7)
    _add_registration(db_session, training)
    await db_session.commit()

    await session_service.update_session(db_session, training.id, _update_data(focus="Setting"))

    await db_session.refresh(training)
    assert training.current_participants == 1


@pytest.mark.asyncio
async def test_update_missing_session(db_session):
    with pytest.raises(SessionNotFoundError):
        await session_service.update_session(db_session, 9999, _update_data(focus="Setting"))


@pytest.mark.asyncio
async def test_set_visibility(db_session, make_session):
    training = await make_session()

    result = await session_service.set_visibility(db_session, training.id, False)
    assert result["is_visible"] is False

    with pytest.raises(SessionNotFoundError):
        await session_service.set_visibility(db_session, 9999, True)


# ---------------------------------------------------------------------------
# Delete / archive
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_session_removes_registrations(db_session, make_session):
    training = await make_session()
    _add_registration(db_session, training)
    _add_registration(db_session, training, name="Riley Smith")
    await db_session.commit()

    assert await session_service.delete_session(db_session, training.id) is True

    result = await db_session.execute(select(func.count(Registration.id)))
    assert result.scalar() == 0
    result = await db_session.execute(select(func.count(Session.id)))
    assert result.scalar() == 0


@pytest.mark.asyncio
async def test_delete_missing_session(db_session):
    assert await session_service.delete_session(db_session, 9999) is False


@pytest.mark.asyncio
async def test_archive_past_sessions(db_session, make_session):
    old = await make_session(date=datetime(2024, 3, 8, 12, tzinfo=UTC))
    yesterday = await make_session(date=datetime(2024, 3, 9, 12, tzinfo=UTC))
    today = await make_session(date=datetime(2024, 3, 10, 12, tzinfo=UTC))
    await make_session(date=datetime(2024, 3, 1, 12, tzinfo=UTC), is_visible=False)

    archived = await session_service.archive_past_sessions(db_session, today=date(2024, 3, 10))

    assert archived == 1
    for training, visible in ((old, False), (yesterday, True), (today, True)):
        await db_session.refresh(training)
        assert training.is_visible is visible


@pytest.mark.asyncio
async def test_archive_nothing_to_do(db_session, make_session):
    await make_session()
    assert await session_service.archive_past_sessions(db_session) == 0


def test_session_summary_shape():
    training = Session(
        id=3,
        sport="volleyball",
        age_group="U10",
        date=datetime(2030, 6, 1, 12),
        time="9:00 AM - 10:00 AM",
        location="Gym",
        address="1 Court St",
        price=0,
    )
    summary = session_service.session_summary(training)
    assert summary["date"] == "2030-06-01T12:00:00+00:00"
    assert set(summary) == {
        "id", "sport", "age_group", "subgroup", "date", "time", "location", "address", "price", "focus",
    }
