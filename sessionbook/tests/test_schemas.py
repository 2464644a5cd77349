"""
Unit tests for request validation models.
"""
import pytest
from pydantic import ValidationError

from sessionbook.models.schemas import (
    AdminLoginRequest,
    CancellationLookup,
    LocationCreate,
    RegistrationCreate,
    SessionCreate,
    SessionUpdate,
)


def _error_message(exc_info) -> str:
    return exc_info.value.errors()[0]["msg"]


class TestRegistrationCreate:
    """Tests for the public signup form."""

    def test_valid_camel_case(self, registration_payload):
        registration = RegistrationCreate(**registration_payload(parentEmail="  Parent@Example.COM "))

        assert registration.player_name == "Alex Smith"
        assert registration.player_age == 12
        assert registration.parent_email == "parent@example.com"
        assert registration.parent_phone == "+12065551234"
        # Empty optional fields become None
        assert registration.medical_info is None
        assert registration.special_notes is None

    def test_valid_snake_case(self):
        registration = RegistrationCreate(
            player_name="Sam O'Neil",
            parent_name="Pat O'Neil",
            parent_email="pat@example.com",
            parent_phone="1-206-555-1234",
        )
        assert registration.parent_phone == "+12065551234"
        assert registration.player_age is None

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"playerName": "Alex<script>"}, "Player name contains invalid characters"),
            ({"playerName": "A" * 51}, "Player name too long"),
            ({"playerName": "   "}, "Player name is required"),
            ({"parentName": "J0rdan"}, "Parent name contains invalid characters"),
            ({"playerAge": 4}, "Player must be at least 5 years old"),
            ({"playerAge": 26}, "Player age too high"),
            ({"parentEmail": "not-an-email"}, "Invalid email format"),
            ({"parentEmail": "a" * 95 + "@x.com"}, "Email too long"),
            ({"parentPhone": "555-1234"}, "Phone number too short"),
            ({"parentPhone": "206-555-1234-5678-9012"}, "Phone number too long"),
            ({"parentPhone": "206-555-123a"}, "Invalid phone number format"),
            ({"parentPhone": "22065551234"}, "Invalid phone number format"),
            ({"medicalInfo": "x" * 501}, "Medical info too long"),
            ({"experience": "x" * 201}, "Experience description too long"),
            ({"specialNotes": "x" * 301}, "Special notes too long"),
            ({"emergencyPhone": "call me"}, "Invalid emergency phone format"),
        ],
    )
    def test_invalid_fields(self, registration_payload, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            RegistrationCreate(**registration_payload(**overrides))
        assert message in _error_message(exc_info)

    def test_missing_required_field(self, registration_payload):
        payload = registration_payload()
        del payload["parentEmail"]
        with pytest.raises(ValidationError) as exc_info:
            RegistrationCreate(**payload)
        assert exc_info.value.errors()[0]["type"] == "missing"


class TestCancellationLookup:
    def test_normalizes_input(self):
        lookup = CancellationLookup(email=" Parent@Example.com ", player_name=" Alex ")
        assert lookup.email == "parent@example.com"
        assert lookup.player_name == "Alex"

    def test_requires_player_name(self):
        with pytest.raises(ValidationError) as exc_info:
            CancellationLookup(email="parent@example.com", player_name="")
        assert "Player name is required" in _error_message(exc_info)


class TestSessionCreate:
    """Tests for the admin session form."""

    @staticmethod
    def _payload(**overrides):
        payload = {
            "ageGroup": "U14",
            "date": "2030-06-01",
            "time": "1:00 PM - 2:30 PM",
            "location": "Community Center Gym",
            "address": "123 Main St",
            "maxParticipants": 10,
            "price": 40,
        }
        payload.update(overrides)
        return payload

    def test_valid(self):
        training = SessionCreate(**self._payload(sport="Basketball"))
        assert training.sport == "basketball"
        assert training.max_participants == 10
        assert training.is_visible is True

    def test_defaults_to_volleyball(self):
        assert SessionCreate(**self._payload()).sport == "volleyball"

    def test_accepts_iso_datetime(self):
        assert SessionCreate(**self._payload(date="2030-06-01T12:00:00.000Z")).date.startswith("2030-06-01")

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"maxParticipants": 0}, "Must allow at least 1 participant"),
            ({"maxParticipants": 51}, "Too many participants"),
            ({"price": -1}, "Price cannot be negative"),
            ({"price": 1001}, "Price too high"),
            ({"date": "06/01/2030"}, "Invalid date format"),
            ({"time": "whenever"}, "Invalid time format"),
            ({"location": ""}, "Location is required"),
            ({"focus": "x" * 101}, "Focus description too long"),
        ],
    )
    def test_invalid_fields(self, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            SessionCreate(**self._payload(**overrides))
        assert message in _error_message(exc_info)


class TestSessionUpdate:
    def test_only_sent_fields_are_set(self):
        update = SessionUpdate(**{"time": "5:00 PM - 6:30 PM"})
        assert update.model_dump(exclude_unset=True) == {"time": "5:00 PM - 6:30 PM"}

    def test_empty_update(self):
        assert SessionUpdate().model_dump(exclude_unset=True) == {}

    def test_validates_sent_fields(self):
        with pytest.raises(ValidationError):
            SessionUpdate(maxParticipants=0)


def test_location_name_too_long():
    with pytest.raises(ValidationError) as exc_info:
        LocationCreate(name="x" * 101, address="123 Main St")
    assert "Location name too long" in _error_message(exc_info)


def test_admin_login_requires_password():
    with pytest.raises(ValidationError) as exc_info:
        AdminLoginRequest()
    assert "Password is required" in _error_message(exc_info)
