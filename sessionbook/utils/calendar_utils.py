"""
Calendar helpers: ICS files and "add to calendar" links for sessions.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from urllib.parse import quote, urlencode

from sessionbook.utils.datetime_utils import (
    ensure_utc,
    session_end_datetime,
    session_start_datetime,
    utcnow,
)

CALENDAR_PRODID = "-//Sessionbook Training//EN"
CALENDAR_UID_DOMAIN = "sessionbook-training"


@dataclass
class CalendarEvent:
    """A single calendar entry derived from a session."""

    title: str
    description: str
    location: str
    start: datetime
    end: datetime
    address: Optional[str] = None
    url: Optional[str] = None
    uid: Optional[str] = None

    @property
    def full_location(self) -> str:
        if self.address:
            return f"{self.location}, {self.address}"
        return self.location


def _format_ics_datetime(value: datetime) -> str:
    if value is None:
        raise ValueError("Invalid date provided to calendar event")
    return ensure_utc(value).strftime("%Y%m%dT%H%M%SZ")


def _escape_ics_text(text: str) -> str:
    text = re.sub(r"([\\,;])", r"\\\1", text or "")
    return text.replace("\r\n", "\\n").replace("\n", "\\n")


def create_calendar_event(session: Dict, tz_name: Optional[str] = None) -> CalendarEvent:
    """
    Build a calendar event from a session dict.

    Args:
        session: Session dict with sport, age_group, date, time, location and
            optional address, focus, price and id
        tz_name: Timezone the session time range is expressed in

    Raises:
        ValueError: If the session date or time range cannot be parsed
    """
    sport = (session.get("sport") or "volleyball").strip()
    sport_title = sport[:1].upper() + sport[1:]
    start = session_start_datetime(session["date"], session["time"], tz_name)
    end = session_end_datetime(session["date"], session["time"], tz_name)

    lines = [f"{sport_title} training session for {session['age_group']} players."]
    if session.get("focus"):
        lines.append(f"Focus: {session['focus']}")
    price = session.get("price")
    if price and price > 0:
        lines.append(f"Price: ${price:g}")
    lines.extend(["", "Please arrive 10 minutes early for warm-up."])

    uid = None
    if session.get("id") is not None:
        uid = f"session-{session['id']}@{CALENDAR_UID_DOMAIN}"

    return CalendarEvent(
        title=f"{sport_title} Training - {session['age_group']}",
        description="\n".join(lines),
        location=session["location"],
        address=session.get("address"),
        start=start,
        end=end,
        uid=uid,
    )


def generate_ics(event: CalendarEvent, dtstamp: Optional[datetime] = None) -> str:
    """
    Render an event as an iCalendar (RFC 5545) document.

    Lines are CRLF-separated. The description carries the full address and a
    Google Maps link; LOCATION carries the venue name only.
    """
    maps_url = f"https://maps.google.com/?q={quote(event.full_location)}"
    description = (
        f"{_escape_ics_text(event.description)}\\n\\nLocation:\\n"
        f"{_escape_ics_text(event.full_location)}\\n\\nView Map: {maps_url}"
    )
    uid = event.uid or f"{uuid.uuid4().hex}@{CALENDAR_UID_DOMAIN}"
    stamp = dtstamp or utcnow()

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{CALENDAR_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{uid}",
        f"DTSTAMP:{_format_ics_datetime(stamp)}",
        f"DTSTART:{_format_ics_datetime(event.start)}",
        f"DTEND:{_format_ics_datetime(event.end)}",
        f"SUMMARY:{_escape_ics_text(event.title)}",
        f"DESCRIPTION:{description}",
        f"LOCATION:{_escape_ics_text(event.location)}",
    ]
    if event.url:
        lines.append(f"URL:{event.url}")
    lines.extend(
        [
            "STATUS:CONFIRMED",
            "TRANSP:OPAQUE",
            "END:VEVENT",
            "END:VCALENDAR",
        ]
    )
    return "\r\n".join(lines)


def generate_google_calendar_url(event: CalendarEvent) -> str:
    """Google Calendar "create event" link."""
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{_format_ics_datetime(event.start)}/{_format_ics_datetime(event.end)}",
        "details": event.description,
        "location": event.location,
    }
    if event.url:
        params["sprop"] = f"website:{event.url}"
    return f"https://calendar.google.com/calendar/render?{urlencode(params)}"


def generate_outlook_calendar_url(event: CalendarEvent) -> str:
    """Outlook.com "compose event" link."""
    params = {
        "subject": event.title,
        "startdt": ensure_utc(event.start).isoformat(),
        "enddt": ensure_utc(event.end).isoformat(),
        "body": event.description,
        "location": event.location,
    }
    return f"https://outlook.live.com/calendar/0/deeplink/compose?{urlencode(params)}"


def ics_filename(event: CalendarEvent) -> str:
    """Safe attachment filename for an event, e.g. "volleyball_training___u12.ics"."""
    return re.sub(r"[^a-z0-9]", "_", event.title.lower()) + ".ics"
