"""
Session archive service: hides past sessions from the public listing.

Background worker that runs once at startup and then every
ARCHIVE_POLL_INTERVAL_SECONDS (a day by default).
"""

import os
import asyncio
import logging
from typing import Optional

from dotenv import load_dotenv

from sessionbook.database import db
from sessionbook.services import session_service

load_dotenv()

logger = logging.getLogger(__name__)

# How often the worker sweeps (seconds)
POLL_INTERVAL_SECONDS = int(os.getenv("ARCHIVE_POLL_INTERVAL_SECONDS", "86400"))


class SessionArchiveService:
    """Background service that archives sessions dated before yesterday."""

    def __init__(self, poll_interval: int = POLL_INTERVAL_SECONDS):
        self.poll_interval = poll_interval
        self._worker_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def start(self) -> None:
        """Start the background archive worker."""
        if self._worker_task is None or self._worker_task.done():
            self._stop_event.clear()
            self._worker_task = asyncio.create_task(self._poll_loop())
            logger.info("Session archive worker started")

    def stop(self) -> None:
        """Stop the background archive worker."""
        self._stop_event.set()
        if self._worker_task and not self._worker_task.done():
            self._worker_task.cancel()
            logger.info("Session archive worker stopped")

    @property
    def is_running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    async def _poll_loop(self) -> None:
        """Main loop: archive, then sleep. Repeats until stopped."""
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in session archive worker: {e}", exc_info=True)

            # Wait for poll interval or until stop is signalled
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                break
            except asyncio.TimeoutError:
                pass

    async def run_once(self) -> int:
        """Archive past sessions in a fresh database session."""
        async with db.AsyncSessionLocal() as session:
            return await session_service.archive_past_sessions(session)


# Global singleton
_archive_service = SessionArchiveService()


def get_session_archive_service() -> SessionArchiveService:
    """Get the global session archive service instance."""
    return _archive_service
