"""
Datetime utility functions.

Session dates are stored as UTC timestamps. A bare calendar date
("2024-01-15") is stored at 12:00 UTC so that it renders as the same
calendar day in every US timezone. Session times are kept as a display
string ("1:00 PM - 2:30 PM") and parsed here when a real instant is needed
(cancellation token expiry, calendar files, reminders).
"""

import os
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union
import pytz
from dotenv import load_dotenv

load_dotenv()

# Timezone the coach schedules sessions in (Seattle area by default)
SESSION_TIMEZONE = os.getenv("SESSION_TIMEZONE", "America/Los_Angeles")

# Cancellations must happen at least this long before the session starts
CANCELLATION_CUTOFF_HOURS = 24

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp][Mm])?\s*$")

DateInput = Union[str, date, datetime]


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return an aware UTC datetime. Naive values are assumed to already be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def get_session_timezone(tz_name: Optional[str] = None):
    """Resolve the timezone used to interpret session start times."""
    return pytz.timezone(tz_name or SESSION_TIMEZONE)


def parse_session_date(date_input: DateInput) -> datetime:
    """
    Parse a session date as an aware UTC datetime.

    A bare "YYYY-MM-DD" string is anchored at UTC midnight (never shifted by the
    server's local timezone). ISO datetime strings keep their own offset; a
    trailing "Z" is accepted.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(date_input, datetime):
        return ensure_utc(date_input)
    if isinstance(date_input, date):
        return datetime(date_input.year, date_input.month, date_input.day, tzinfo=pytz.UTC)
    if not isinstance(date_input, str):
        raise ValueError(f"Expected string, date or datetime, got {type(date_input)}")

    date_str = date_input.strip()
    if "T" in date_str:
        parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
        return ensure_utc(parsed)

    parsed = datetime.strptime(date_str, "%Y-%m-%d")
    return pytz.UTC.localize(parsed)


def normalize_session_date(date_input: DateInput) -> datetime:
    """
    Convert an incoming session date into its stored form.

    Bare calendar dates become 12:00 UTC on that day; full datetimes are
    stored as given (converted to UTC).
    """
    if isinstance(date_input, str) and _ISO_DATE_RE.match(date_input.strip()):
        parsed = datetime.strptime(date_input.strip(), "%Y-%m-%d")
        return pytz.UTC.localize(parsed.replace(hour=12))
    if isinstance(date_input, date) and not isinstance(date_input, datetime):
        return datetime(date_input.year, date_input.month, date_input.day, 12, tzinfo=pytz.UTC)
    return parse_session_date(date_input)


def session_calendar_date(date_input: DateInput) -> date:
    """Calendar day a session takes place on (read in UTC)."""
    return parse_session_date(date_input).date()


def format_session_date(date_input: DateInput) -> str:
    """
    Format a session date for display, e.g. "Monday, January 15, 2024".

    Examples:
        >>> format_session_date("2024-01-15")
        'Monday, January 15, 2024'
    """
    parsed = parse_session_date(date_input)
    return f"{parsed.strftime('%A')}, {parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def format_session_date_short(date_input: DateInput) -> str:
    """Short display form, e.g. "Monday, Jan 15"."""
    parsed = parse_session_date(date_input)
    return f"{parsed.strftime('%A')}, {parsed.strftime('%b')} {parsed.day}"


def format_date_for_input(date_input: DateInput) -> str:
    """Format a date as YYYY-MM-DD (HTML date input / API summaries)."""
    return parse_session_date(date_input).strftime("%Y-%m-%d")


def split_time_range(time_range: str) -> Tuple[str, Optional[str]]:
    """
    Split "1:00 PM - 2:30 PM" into its start and end parts.

    Also tolerates "1:00 PM-2:30 PM" and a single time with no end.
    """
    if not time_range or not time_range.strip():
        raise ValueError("Time range is empty")
    if " - " in time_range:
        start, end = time_range.split(" - ", 1)
    elif "-" in time_range:
        start, end = time_range.split("-", 1)
    else:
        return time_range.strip(), None
    return start.strip(), (end.strip() or None)


def parse_clock_time(value: str) -> Tuple[int, int]:
    """
    Parse a 12-hour ("1:00 PM", "12 AM") or 24-hour ("13:00") clock time.

    Returns:
        (hour, minute) in 24-hour form

    Raises:
        ValueError: If the value is not a valid clock time
    """
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value}")

    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    modifier = (match.group(3) or "").upper()

    if minutes > 59:
        raise ValueError(f"Invalid time format: {value}")

    if modifier:
        if hours < 1 or hours > 12:
            raise ValueError(f"Invalid time format: {value}")
        if modifier == "AM" and hours == 12:
            hours = 0
        elif modifier == "PM" and hours != 12:
            hours += 12
    elif hours > 23:
        raise ValueError(f"Invalid time format: {value}")

    return hours, minutes


def to_24_hour(value: str) -> str:
    """Convert "1:00 PM" to "13:00"."""
    hours, minutes = parse_clock_time(value)
    return f"{hours:02d}:{minutes:02d}"


def parse_time_range(time_range: str) -> Tuple[Tuple[int, int], Tuple[int, int]]:
    """
    Parse a session time range into ((start_h, start_m), (end_h, end_m)).

    A range without an end time is treated as lasting one hour.
    """
    start_str, end_str = split_time_range(time_range)
    start = parse_clock_time(start_str)
    if end_str is None:
        end_dt = datetime.combine(date.today(), time(*start)) + timedelta(hours=1)
        return start, (end_dt.hour, end_dt.minute)
    return start, parse_clock_time(end_str)


def _localized(day: date, clock: Tuple[int, int], tz_name: Optional[str]) -> datetime:
    tz = get_session_timezone(tz_name)
    local = tz.localize(datetime(day.year, day.month, day.day, clock[0], clock[1]))
    return local.astimezone(pytz.UTC)


def session_start_datetime(
    session_date: DateInput, time_range: str, tz_name: Optional[str] = None
) -> datetime:
    """
    Instant a session starts, as an aware UTC datetime.

    The start time is read from the time range and interpreted as wall-clock
    time in the session timezone on the session's calendar day.
    """
    start, _ = parse_time_range(time_range)
    return _localized(session_calendar_date(session_date), start, tz_name)


def session_end_datetime(
    session_date: DateInput, time_range: str, tz_name: Optional[str] = None
) -> datetime:
    """Instant a session ends, as an aware UTC datetime."""
    start, end = parse_time_range(time_range)
    day = session_calendar_date(session_date)
    end_dt = _localized(day, end, tz_name)
    if end_dt <= _localized(day, start, tz_name):
        # Range crosses midnight
        end_dt += timedelta(days=1)
    return end_dt


def compute_token_expiry(
    session_date: DateInput, time_range: str, tz_name: Optional[str] = None
) -> datetime:
    """Cancellation tokens expire CANCELLATION_CUTOFF_HOURS before the session starts."""
    start = session_start_datetime(session_date, time_range, tz_name)
    return start - timedelta(hours=CANCELLATION_CUTOFF_HOURS)


def local_today(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """Today's date in the session timezone."""
    current = ensure_utc(now) if now else utcnow()
    return current.astimezone(get_session_timezone(tz_name)).date()
