"""
Domain errors raised by the service layer.

Each error carries the HTTP status the API maps it to, so routes can turn
any of them into an HTTPException in one place.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors with a user-facing message and status code."""

    status_code = 400

    def __init__(self, message: str, extra: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class SessionNotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str = "Session not found"):
        super().__init__(message)


class RegistrationNotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str = "Registration not found"):
        super().__init__(message)


class SessionFullError(ServiceError):
    status_code = 400

    def __init__(self, message: str = "Session is full"):
        super().__init__(message)


class DuplicateRegistrationError(ServiceError):
    """Same player and parent email already registered for the session."""

    status_code = 409

    def __init__(self, player_name: str, parent_email: str):
        super().__init__(
            f"{player_name} is already registered for this session with email "
            f"{parent_email}. Please check your email for the confirmation details "
            "or use the cancellation link to make changes.",
            extra={"is_duplicate": True},
        )


class CancellationExpiredError(ServiceError):
    status_code = 410

    def __init__(
        self,
        message: str = (
            "This cancellation link has expired. Cancellations must be made at "
            "least 24 hours before the training session."
        ),
    ):
        super().__init__(message)


class AdminNotConfiguredError(ServiceError):
    status_code = 500

    def __init__(self, message: str = "Admin authentication is not configured"):
        super().__init__(message)
