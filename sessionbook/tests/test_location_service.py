"""
Tests for the location cache.
"""

import pytest

from sessionbook.services import location_service


@pytest.mark.asyncio
async def test_upsert_creates_location(db_session):
    location, created = await location_service.upsert_location(db_session, " Main Gym ", "1 Court St")

    assert created is True
    assert location["name"] == "Main Gym"
    assert location["address"] == "1 Court St"
    assert location["last_used"] is not None


@pytest.mark.asyncio
async def test_upsert_updates_by_name_case_insensitively(db_session):
    first, _ = await location_service.upsert_location(db_session, "Main Gym", "1 Court St")
    second, created = await location_service.upsert_location(db_session, "MAIN GYM", "2 Court St")

    assert created is False
    assert second["id"] == first["id"]
    assert second["name"] == "Main Gym"
    assert second["address"] == "2 Court St"
    assert len(await location_service.list_locations(db_session)) == 1


@pytest.mark.asyncio
async def test_list_most_recently_used_first(db_session):
    await location_service.upsert_location(db_session, "North Gym", "1 North St")
    await location_service.upsert_location(db_session, "South Gym", "1 South St")

    names = [loc["name"] for loc in await location_service.list_locations(db_session)]
    assert names == ["South Gym", "North Gym"]

    # Using North again moves it to the front
    await location_service.upsert_location(db_session, "North Gym", "1 North St")
    names = [loc["name"] for loc in await location_service.list_locations(db_session)]
    assert names == ["North Gym", "South Gym"]


@pytest.mark.asyncio
async def test_delete_location(db_session):
    location, _ = await location_service.upsert_location(db_session, "Main Gym", "1 Court St")

    assert await location_service.delete_location(db_session, location["id"]) is True
    assert await location_service.list_locations(db_session) == []
    assert await location_service.delete_location(db_session, location["id"]) is False
