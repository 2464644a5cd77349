"""
Pydantic models for API request/response validation.

Request models accept both snake_case and camelCase keys (the public
signup form posts camelCase). Validation messages are written for end users;
the API turns the first failing message into a 400 response.
"""

import re
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from sessionbook.services.sms_service import is_valid_phone_number, format_phone_number
from sessionbook.utils.datetime_utils import parse_time_range

NAME_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
PHONE_PATTERN = re.compile(r"^[\d\s\-\(\)\+]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


def _required_text(value: str, label: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{label} is required")
    if len(value) > max_length:
        raise ValueError(f"{label} too long")
    return value


def _optional_text(value: Optional[str], label: str, max_length: int) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > max_length:
        raise ValueError(f"{label} too long")
    return value


def _person_name(value: str, label: str) -> str:
    value = _required_text(value, label, 50)
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} contains invalid characters")
    return value


def _email(value: str) -> str:
    value = (value or "").strip().lower()
    if len(value) > 100:
        raise ValueError("Email too long")
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value


class CamelModel(BaseModel):
    """Base for request bodies that accept snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------


class RegistrationCreate(CamelModel):
    """Signup form for one player."""

    player_name: str
    player_age: Optional[int] = None
    parent_name: str
    parent_email: str
    parent_phone: str
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    medical_info: Optional[str] = None
    experience: Optional[str] = None
    special_notes: Optional[str] = None

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v):
        return _person_name(v, "Player name")

    @field_validator("parent_name")
    @classmethod
    def validate_parent_name(cls, v):
        return _person_name(v, "Parent name")

    @field_validator("player_age")
    @classmethod
    def validate_player_age(cls, v):
        if v is None:
            return v
        if v < 5:
            raise ValueError("Player must be at least 5 years old")
        if v > 25:
            raise ValueError("Player age too high")
        return v

    @field_validator("parent_email")
    @classmethod
    def validate_parent_email(cls, v):
        return _email(v)

    @field_validator("parent_phone")
    @classmethod
    def validate_parent_phone(cls, v):
        v = (v or "").strip()
        if len(v) < 10:
            raise ValueError("Phone number too short")
        if len(v) > 20:
            raise ValueError("Phone number too long")
        if not PHONE_PATTERN.match(v) or not is_valid_phone_number(v):
            raise ValueError("Invalid phone number format")
        return format_phone_number(v)

    @field_validator("emergency_contact")
    @classmethod
    def validate_emergency_contact(cls, v):
        v = _optional_text(v, "Emergency contact name", 50)
        if v is not None and not NAME_PATTERN.match(v):
            raise ValueError("Emergency contact contains invalid characters")
        return v

    @field_validator("emergency_phone")
    @classmethod
    def validate_emergency_phone(cls, v):
        v = _optional_text(v, "Emergency phone", 20)
        if v is not None and not PHONE_PATTERN.match(v):
            raise ValueError("Invalid emergency phone format")
        return v

    @field_validator("medical_info")
    @classmethod
    def validate_medical_info(cls, v):
        return _optional_text(v, "Medical info", 500)

    @field_validator("experience")
    @classmethod
    def validate_experience(cls, v):
        return _optional_text(v, "Experience description", 200)

    @field_validator("special_notes")
    @classmethod
    def validate_special_notes(cls, v):
        return _optional_text(v, "Special notes", 300)


class CancellationLookup(CamelModel):
    """Manual cancellation by parent email + player name."""

    email: str
    player_name: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _email(v)

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, v):
        return _required_text(v, "Player name", 50)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def _session_date(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("Date is required")
    if not (DATE_PATTERN.match(value) or DATETIME_PATTERN.match(value)):
        raise ValueError("Invalid date format")
    return value


def _session_time(value: str) -> str:
    value = _required_text(value, "Time", 20)
    try:
        parse_time_range(value)
    except ValueError:
        raise ValueError("Invalid time format, expected e.g. \"1:00 PM - 2:30 PM\"")
    return value


def _max_participants(value: int) -> int:
    if value < 1:
        raise ValueError("Must allow at least 1 participant")
    if value > 50:
        raise ValueError("Too many participants")
    return value


def _price(value: float) -> float:
    if value < 0:
        raise ValueError("Price cannot be negative")
    if value > 1000:
        raise ValueError("Price too high")
    return value


class SessionCreate(CamelModel):
    """Admin request to schedule a session."""

    coach_id: Optional[int] = None
    sport: str = "volleyball"
    age_group: str
    subgroup: Optional[str] = None
    date: str
    time: str
    location: str
    address: str
    max_participants: int
    price: float = 0
    focus: Optional[str] = None
    is_visible: bool = True

    @field_validator("sport")
    @classmethod
    def validate_sport(cls, v):
        return _required_text(v, "Sport", 20).lower()

    @field_validator("age_group")
    @classmethod
    def validate_age_group(cls, v):
        return _required_text(v, "Age group", 50)

    @field_validator("subgroup")
    @classmethod
    def validate_subgroup(cls, v):
        return _optional_text(v, "Subgroup", 50)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return _session_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return _session_time(v)

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        return _required_text(v, "Location", 100)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _required_text(v, "Address", 200)

    @field_validator("max_participants")
    @classmethod
    def validate_max_participants(cls, v):
        return _max_participants(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return _price(v)

    @field_validator("focus")
    @classmethod
    def validate_focus(cls, v):
        return _optional_text(v, "Focus description", 100)


class SessionUpdate(CamelModel):
    """Partial admin edit of a session. Omitted fields are left unchanged."""

    coach_id: Optional[int] = None
    sport: Optional[str] = None
    age_group: Optional[str] = None
    subgroup: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    max_participants: Optional[int] = None
    price: Optional[float] = None
    focus: Optional[str] = None
    is_visible: Optional[bool] = None

    @field_validator("sport")
    @classmethod
    def validate_sport(cls, v):
        return None if v is None else _required_text(v, "Sport", 20).lower()

    @field_validator("age_group")
    @classmethod
    def validate_age_group(cls, v):
        return None if v is None else _required_text(v, "Age group", 50)

    @field_validator("subgroup")
    @classmethod
    def validate_subgroup(cls, v):
        return _optional_text(v, "Subgroup", 50)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return None if v is None else _session_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return None if v is None else _session_time(v)

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        return None if v is None else _required_text(v, "Location", 100)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return None if v is None else _required_text(v, "Address", 200)

    @field_validator("max_participants")
    @classmethod
    def validate_max_participants(cls, v):
        return None if v is None else _max_participants(v)

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        return None if v is None else _price(v)

    @field_validator("focus")
    @classmethod
    def validate_focus(cls, v):
        return _optional_text(v, "Focus description", 100)


class SessionVisibilityUpdate(CamelModel):
    """Show or hide (archive) a session."""

    is_visible: bool


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


class LocationCreate(BaseModel):
    """Add a venue to the location cache (or refresh an existing one)."""

    name: str
    address: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Location name", 100)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _required_text(v, "Address", 200)


# ---------------------------------------------------------------------------
# Admin auth
# ---------------------------------------------------------------------------


class AdminLoginRequest(BaseModel):
    """Admin password login."""

    password: str = Field(default="", validate_default=True)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        return v


class AdminLoginResponse(BaseModel):
    """Successful admin login."""

    success: bool
    message: str
    expires_in: int
    token: str


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    message: str


class MessageResponse(BaseModel):
    """Generic confirmation message."""

    success: bool = True
    message: str


class CancellationDetailsResponse(BaseModel):
    """What a cancellation link points at. Contact and medical details stay private."""

    id: int
    player_name: str
    parent_name: str
    parent_email: str
    token_expires_at: Optional[str] = None
    session: Optional[dict] = None


class CancellationResponse(BaseModel):
    """Result of a cancellation."""

    message: str
    player_name: str
    session_details: Optional[dict] = None


class ReminderRunResponse(BaseModel):
    """Outcome of the reminder cron job."""

    success: bool
    sessions_found: int
    emails_sent: int
    emails_failed: int


class ArchiveRunResponse(BaseModel):
    """Outcome of an archive sweep."""

    archived: int


class ValidationErrorItem(BaseModel):
    """One field-level validation failure."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """400 body for invalid requests."""

    detail: str
    errors: List[ValidationErrorItem] = []
