"""
Helpers for keeping personal data out of server logs.
"""

import re
from typing import Any

SENSITIVE_FIELDS = (
    "password",
    "email",
    "phone",
    "token",
    "medical",
)

REDACTED = "[REDACTED]"

_EMAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")


def _is_sensitive(key: Any) -> bool:
    key_lower = str(key).lower()
    return any(field in key_lower for field in SENSITIVE_FIELDS)


def sanitize_log_data(data: Any) -> Any:
    """
    Return a copy of ``data`` that is safe to log.

    Dict keys that look like passwords, emails, phones, tokens or medical info
    are replaced with "[REDACTED]" at any depth. Exceptions and strings have
    embedded email addresses masked.
    """
    if isinstance(data, BaseException):
        return f"{type(data).__name__}: {_EMAIL_RE.sub(REDACTED, str(data))}"
    if isinstance(data, str):
        return _EMAIL_RE.sub(REDACTED, data)
    if isinstance(data, dict):
        return {
            key: REDACTED if _is_sensitive(key) else sanitize_log_data(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_log_data(item) for item in data]
    return data
