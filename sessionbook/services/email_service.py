"""
Email service using SendGrid for sending notifications to parents.

Every send returns a bool and never raises: notifications are best-effort and
must not break registration, cancellation or session edits.
"""

import os
import asyncio
import base64
import html
import logging
from typing import Optional, List, Dict
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Mail,
    Email,
    To,
    Attachment,
    FileContent,
    FileName,
    FileType,
    Disposition,
)
from dotenv import load_dotenv

from sessionbook.utils.calendar_utils import create_calendar_event, generate_ics, ics_filename
from sessionbook.utils.datetime_utils import format_session_date
from sessionbook.utils.security import sanitize_log_data

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def get_bool_env(key: str, default: bool = True) -> bool:
    """
    Parse a boolean environment variable from a string value.

    .env files store all values as strings, so this function converts string
    values like "true", "True", "TRUE", "1", "yes" to True, and everything
    else (including "false", "False", "0", "no", empty string) to False.

    Args:
        key: Environment variable name
        default: Default value if the variable is not set

    Returns:
        bool: Parsed boolean value
    """
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes")


# SendGrid Configuration
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@sessionbook.app")
ENABLE_EMAIL = get_bool_env("ENABLE_EMAIL", default=True)
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")
ORGANIZATION_NAME = os.getenv("ORGANIZATION_NAME", "Sessionbook Training")
CONTACT_EMAIL = os.getenv("CONTACT_EMAIL", SENDGRID_FROM_EMAIL)

FIELD_LABELS = {
    "date": "Date",
    "time": "Time",
    "location": "Location",
    "address": "Address",
    "focus": "Focus",
    "price": "Price",
}


def build_cancellation_url(token: str) -> str:
    """Public page where a parent can cancel with their token."""
    return f"{PUBLIC_BASE_URL}/cancel/{token}"


def _format_price(price) -> str:
    if not price:
        return "Free"
    return f"${price:g}"


def _sport_title(session: Dict) -> str:
    sport = session.get("sport") or "volleyball"
    return sport[:1].upper() + sport[1:]


def _session_name(session: Dict) -> str:
    if session.get("subgroup"):
        return f"{session['age_group']} - {session['subgroup']}"
    return session["age_group"]


def _session_details(session: Dict) -> List[tuple]:
    """(label, value) rows describing a session, used in every template."""
    rows = [("Session", _session_name(session))]
    if session.get("focus"):
        rows.append(("Focus", session["focus"]))
    rows.extend(
        [
            ("Date", format_session_date(session["date"])),
            ("Time", session["time"]),
            ("Location", session["location"]),
            ("Address", session["address"]),
            ("Session Fee", _format_price(session.get("price"))),
        ]
    )
    return rows


def _render_text(greeting: str, intro: str, rows: List[tuple], sections: List[str]) -> str:
    lines = [greeting, "", intro, "", "SESSION DETAILS:"]
    lines.extend(f"{label}: {value}" for label, value in rows)
    for section in sections:
        lines.extend(["", section])
    lines.extend(
        [
            "",
            f"If you have any questions, contact us at {CONTACT_EMAIL}",
            "",
            "Best regards,",
            ORGANIZATION_NAME,
        ]
    )
    return "\n".join(lines)


def _render_html(
    title: str,
    greeting: str,
    intro: str,
    rows: List[tuple],
    sections: List[str],
    highlight: Optional[List[str]] = None,
) -> str:
    highlight = highlight or []
    detail_rows = []
    for label, value in rows:
        style = ' style="background-color: #fef3c7;"' if label in highlight else ""
        detail_rows.append(
            f"<div{style}><strong>{html.escape(label)}:</strong> {html.escape(str(value))}</div>"
        )
    section_html = "".join(f"<p>{section}</p>" for section in sections)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        "<body style=\"font-family: Arial, sans-serif; line-height: 1.6; color: #333; "
        "max-width: 600px; margin: 0 auto; padding: 20px;\">"
        f"<h1>{html.escape(title)}</h1>"
        f"<p>{html.escape(greeting)}</p>"
        f"<p>{html.escape(intro)}</p>"
        "<div style=\"border-left: 4px solid #2563eb; padding: 10px 20px;\">"
        f"{''.join(detail_rows)}</div>"
        f"{section_html}"
        f"<p>If you have any questions, contact us at "
        f"<a href=\"mailto:{html.escape(CONTACT_EMAIL)}\">{html.escape(CONTACT_EMAIL)}</a>.</p>"
        f"<p>Best regards,<br>{html.escape(ORGANIZATION_NAME)}</p>"
        "</body></html>"
    )


def _calendar_attachment(session: Dict) -> Optional[Attachment]:
    """Build the .ics attachment for a session, or None if its time can't be parsed."""
    try:
        event = create_calendar_event(session)
        event.url = f"{PUBLIC_BASE_URL}/sessions"
        ics = generate_ics(event)
    except (ValueError, KeyError) as e:
        logger.warning(f"Could not build calendar attachment for session {session.get('id')}: {e}")
        return None
    encoded = base64.b64encode(ics.encode("utf-8")).decode("ascii")
    return Attachment(
        FileContent(encoded),
        FileName(ics_filename(event)),
        FileType("text/calendar"),
        Disposition("attachment"),
    )


async def _send(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str,
    session: Optional[Dict] = None,
) -> bool:
    """
    Send one message through SendGrid.

    Args:
        to_email: Recipient
        subject: Subject line
        text_body: Plain-text content
        html_body: HTML content
        session: When given, the session's .ics file is attached

    Returns:
        bool: True if sent (or skipped because email is off), False on failure
    """
    if not ENABLE_EMAIL:
        logger.info("Email sending is disabled. Email notification skipped.")
        return True  # Skipped, not failed

    if not SENDGRID_API_KEY:
        logger.warning("SENDGRID_API_KEY not configured. Email notification skipped.")
        return True

    try:
        message = Mail(
            from_email=Email(SENDGRID_FROM_EMAIL, ORGANIZATION_NAME),
            to_emails=To(to_email),
            subject=subject,
            plain_text_content=text_body,
            html_content=html_body,
        )
        if session is not None:
            attachment = _calendar_attachment(session)
            if attachment is not None:
                message.attachment = attachment

        sg = SendGridAPIClient(SENDGRID_API_KEY)
        # The SendGrid client is blocking
        response = await asyncio.to_thread(sg.send, message)

        if 200 <= response.status_code < 300:
            logger.info(f"Email sent: {subject!r}")
            return True
        logger.error(f"SendGrid returned status {response.status_code}: {response.body}")
        return False

    except Exception as e:
        logger.error(f"Failed to send email {subject!r}: {sanitize_log_data(e)}")
        return False


async def send_registration_confirmation(
    registration: Dict, session: Dict, cancellation_url: str
) -> bool:
    """
    Confirmation with session details, calendar file and the cancellation link.

    Args:
        registration: Registration dict (player_name, parent_name, parent_email)
        session: Session dict
        cancellation_url: Link that cancels this registration
    """
    player = registration["player_name"]
    subject = f"Registration Confirmed: {player} - {_sport_title(session)} Training Session"
    greeting = f"Hi {registration['parent_name']},"
    intro = (
        f"Thank you for registering {player} for the {session.get('sport') or 'volleyball'} "
        "training session! A calendar invite is attached."
    )
    rows = [("Player", player)] + _session_details(session)
    policy = (
        "CANCELLATION POLICY: Cancellations must be made at least 24 hours before "
        "the training session. This link expires 24 hours before the session and can "
        "only be used once:"
    )

    text_body = _render_text(
        greeting,
        intro,
        rows,
        [
            "Please arrive 10-15 minutes before the session starts. The session fee is "
            "collected at the session.",
            f"{policy}\n{cancellation_url}",
        ],
    )
    html_body = _render_html(
        "Registration Confirmed!",
        greeting,
        intro,
        rows,
        [
            "Please arrive 10-15 minutes before the session starts. The session fee is "
            "collected at the session.",
            f"{html.escape(policy)}<br>"
            f"<a href=\"{html.escape(cancellation_url)}\">Cancel Registration</a>",
        ],
    )
    return await _send(registration["parent_email"], subject, text_body, html_body, session=session)


async def send_cancellation_confirmation(registration: Dict, session: Dict) -> bool:
    """Tell the parent the registration was cancelled."""
    player = registration["player_name"]
    subject = f"Registration Cancelled: {player} - {_sport_title(session)} Training Session"
    greeting = f"Hi {registration['parent_name']},"
    intro = f"{player}'s registration for the session below has been cancelled."
    rows = _session_details(session)
    closing = "We hope to see you at a future session."

    text_body = _render_text(greeting, intro, rows, [closing])
    html_body = _render_html("Registration Cancelled", greeting, intro, rows, [closing])
    return await _send(registration["parent_email"], subject, text_body, html_body)


async def send_session_updated(registration: Dict, session: Dict, changes: List[str]) -> bool:
    """
    Tell a registered parent that session details changed.

    Args:
        registration: Registration dict
        session: Session dict with the new values
        changes: Changed field names (date, time, location, address, focus, price)
    """
    player = registration["player_name"]
    changed_labels = [FIELD_LABELS.get(field, field.title()) for field in changes]
    subject = f"Session Updated: {_sport_title(session)} Training - {_session_name(session)}"
    greeting = f"Hi {registration['parent_name']},"
    intro = (
        f"The training session {player} is registered for has been updated "
        f"({', '.join(changed_labels)}). An updated calendar invite is attached."
    )
    rows = [("Player", player)] + _session_details(session)
    highlight = ["Session Fee" if label == "Price" else label for label in changed_labels]
    note = "If the new details don't work for you, reply to this email or use your cancellation link."

    text_body = _render_text(greeting, intro, rows, [note])
    html_body = _render_html("Session Updated", greeting, intro, rows, [note], highlight=highlight)
    return await _send(registration["parent_email"], subject, text_body, html_body, session=session)


async def send_session_reminder(registration: Dict, session: Dict) -> bool:
    """Day-before reminder."""
    player = registration["player_name"]
    subject = f"Reminder: {player}'s {_sport_title(session)} Training Tomorrow"
    greeting = f"Hi {registration['parent_name']},"
    intro = f"This is a reminder that {player} has a training session tomorrow."
    rows = _session_details(session)
    bring = "Please bring a water bottle, athletic wear and court shoes, and arrive 10-15 minutes early."

    text_body = _render_text(greeting, intro, rows, [bring])
    html_body = _render_html("See you tomorrow!", greeting, intro, rows, [bring])
    return await _send(registration["parent_email"], subject, text_body, html_body, session=session)
