"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, error helpers) lives here; every sub-router
imports what it needs from this package.
"""

import os
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from sessionbook.models.schemas import ValidationErrorResponse
from sessionbook.services.errors import ServiceError
from sessionbook.utils.security import sanitize_log_data

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Shared error helpers
# ---------------------------------------------------------------------------


def validation_errors(errors) -> list:
    """
    Flatten pydantic errors into [{"field", "message"}], dropping pydantic's
    "Value error, " prefix from messages raised by our validators.
    """
    flattened = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        message = error.get("msg", "Invalid value")
        if error.get("type") == "missing":
            message = f"{field} is required"
        elif message.startswith("Value error, "):
            message = message[len("Value error, "):]
        flattened.append({"field": field, "message": message})
    return flattened


def validation_error_response(errors) -> JSONResponse:
    """400 with the first failing message as detail."""
    flattened = validation_errors(errors)
    detail = flattened[0]["message"] if flattened else "Invalid request"
    body = ValidationErrorResponse(detail=detail, errors=flattened)
    return JSONResponse(status_code=400, content=body.model_dump())


def service_error(e: ServiceError) -> HTTPException:
    """Map a domain error onto its HTTP status."""
    return HTTPException(status_code=e.status_code, detail=e.message)


def service_error_response(e: ServiceError) -> JSONResponse:
    """Like service_error, but keeps extra body keys (e.g. is_duplicate)."""
    return JSONResponse(status_code=e.status_code, content={"detail": e.message, **e.extra})


def internal_error(e: Exception, context: str) -> JSONResponse:
    """500 body for unexpected failures, logged without personal data."""
    logger.error(f"{context}: {sanitize_log_data(e)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "details": sanitize_log_data(str(e))},
    )


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from sessionbook.api.routes.health import router as health_router  # noqa: E402
from sessionbook.api.routes.sessions import router as sessions_router  # noqa: E402
from sessionbook.api.routes.registrations import router as registrations_router  # noqa: E402
from sessionbook.api.routes.cancel import router as cancel_router  # noqa: E402
from sessionbook.api.routes.locations import router as locations_router  # noqa: E402
from sessionbook.api.routes.coaches import router as coaches_router  # noqa: E402
from sessionbook.api.routes.admin import router as admin_router  # noqa: E402
from sessionbook.api.routes.cron import router as cron_router  # noqa: E402

router = APIRouter()
router.include_router(health_router)
router.include_router(sessions_router)
router.include_router(registrations_router)
router.include_router(cancel_router)
router.include_router(locations_router)
router.include_router(coaches_router)
router.include_router(admin_router)
router.include_router(cron_router)
