#!/usr/bin/env python3
"""
Initialize default database values.
This script is run on startup to seed the default coach profile.
"""

import asyncio
import logging
from sessionbook.database.db import AsyncSessionLocal
from sessionbook.services import coach_service

logger = logging.getLogger(__name__)


async def init_defaults():
    """Initialize default database values."""
    async with AsyncSessionLocal() as session:
        if not await coach_service.seed_default_coach(session):
            logger.info("Coach profile already exists")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_defaults())
