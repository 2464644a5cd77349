"""
Rate limiting service for admin login attempts.

Tracks login attempts per client IP in memory using a fixed window.
Good enough for a single-instance deployment.
"""

import time
from fastapi import HTTPException, Request
from slowapi.util import get_remote_address

# Admin login: 5 attempts per 15 minutes per IP
LOGIN_MAX_ATTEMPTS = 5
LOGIN_WINDOW_SECONDS = 15 * 60

# In-memory storage: key -> {"count": int, "reset_time": float}
_login_rate_limit_storage = {}


def reset_rate_limit_storage():
    """Reset the rate limit storage. Useful for testing."""
    _login_rate_limit_storage.clear()


def get_client_ip(request: Request) -> str:
    """
    The connecting peer's address. Forwarded-for headers are not read here;
    behind a proxy, uvicorn's proxy-headers handling rewrites the peer for
    trusted proxies only (FORWARDED_ALLOW_IPS).
    """
    return get_remote_address(request) or "unknown"


def check_login_rate_limit(ip: str, now: float = None) -> None:
    """
    Count one login attempt for an IP.

    Raises:
        HTTPException: 429 once the IP has used up its attempts for the window
    """
    now = time.time() if now is None else now
    key = f"login:{ip}"
    record = _login_rate_limit_storage.get(key)

    if record is None or now > record["reset_time"]:
        _login_rate_limit_storage[key] = {"count": 1, "reset_time": now + LOGIN_WINDOW_SECONDS}
        return

    if record["count"] >= LOGIN_MAX_ATTEMPTS:
        raise HTTPException(
            status_code=429,
            detail="Too many login attempts. Please try again later.",
        )

    record["count"] += 1


def clear_login_rate_limit(ip: str) -> None:
    """Forget an IP's attempts after a successful login."""
    _login_rate_limit_storage.pop(f"login:{ip}", None)
