"""
Training Session Booking API Server

FastAPI server for the session catalog, player registration and cancellation,
and the coach's admin tools.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from sessionbook.api.routes import router, limiter as routes_limiter, validation_error_response
from sessionbook.database import db
from sessionbook.database.init_defaults import init_defaults
from sessionbook.services.archive_service import get_session_archive_service
from sessionbook.services.email_service import get_bool_env

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ENABLE_ARCHIVE_WORKER = get_bool_env("ENABLE_ARCHIVE_WORKER", default=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting up Training Session Booking API...")

    # Initialize database (create tables if they don't exist)
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        # Don't raise - allow app to start even if initialization fails

    # Seed the default coach profile
    try:
        await init_defaults()
        logger.info("Default values initialized")
    except Exception as e:
        logger.error(f"Failed to initialize defaults: {e}", exc_info=True)

    # Start the archive worker (hides sessions dated before yesterday)
    if ENABLE_ARCHIVE_WORKER:
        try:
            get_session_archive_service().start()
        except Exception as e:
            logger.error(f"Failed to start session archive worker: {e}", exc_info=True)

    yield  # App is running

    # Shutdown
    logger.info("Shutting down Training Session Booking API...")

    try:
        get_session_archive_service().stop()
    except Exception as e:
        logger.error(f"Error stopping session archive worker: {e}", exc_info=True)


app = FastAPI(
    title="Training Session Booking API",
    description="API for booking youth sports training sessions",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Invalid input is a 400 with the first field message as detail."""
    return validation_error_response(exc.errors())


# Add CORS middleware - origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


if __name__ == "__main__":
    # Forwarded headers are only honoured from the listed proxies
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        proxy_headers=True,
        forwarded_allow_ips=os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1"),
    )
