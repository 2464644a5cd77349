"""
Coach profile service.

The site runs with one implicit coach. Profiles are read-only through the
API; the default profile is seeded on startup when the table is empty.
"""

import os
import logging
from typing import Dict, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from dotenv import load_dotenv

from sessionbook.database.models import (
    Coach,
    CoachAvailability,
    CoachCertification,
    CoachExperience,
    CoachReview,
)

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_COACH = {
    "name": os.getenv("COACH_NAME", "Head Coach"),
    "title": "Professional Volleyball Coach",
    "image": "/placeholder.svg?height=400&width=400",
    "rating": 4.9,
    "review_count": 127,
    "specialties": "Youth Development,Skill Progression,Team Building,Competition Prep,Mental Training",
    "min_group_size": 4,
    "max_group_size": 12,
    "session_length": 60,
    "hourly_rate": 85,
    "location": os.getenv("COACH_LOCATION", "Redmond, WA"),
    "virtual_available": False,
    "bio": (
        "With over 15 years of experience coaching youth volleyball, our coach has "
        "developed hundreds of players from beginner to elite levels, with a focus on "
        "age-appropriate training, strong fundamentals and each player's unique strengths."
    ),
}

DEFAULT_EXPERIENCE = [
    ("Head Volleyball Coach", "Elite Volleyball Academy", "2015 - Present"),
    ("Assistant Volleyball Coach", "Premier Volleyball Club", "2012 - 2015"),
    ("Volleyball Camp Instructor", "Summer Sports Camps", "2010 - 2012"),
]

DEFAULT_CERTIFICATIONS = [
    "USA Volleyball Certified Coach",
    "Youth Sports Safety Certified",
    "First Aid/CPR Certified",
    "Positive Coaching Alliance Certified",
]

DEFAULT_REVIEWS = [
    ("Jennifer L.", 5, "June 15, 2023",
     "An amazing volleyball coach! My daughter has improved so much."),
    ("Michael T.", 5, "May 3, 2023",
     "We hired the coach for a 6-week training program. The expertise and enthusiasm pushed us to new levels."),
    ("Sophia R.", 4, "April 22, 2023",
     "A wonderful clinic for our group of friends, with a perfect balance of challenging drills and fun games."),
]

DEFAULT_AVAILABILITY = [
    ("monday", "6:00 PM - 8:00 PM"),
    ("tuesday", "6:00 PM - 8:00 PM"),
    ("wednesday", "6:00 PM - 8:00 PM"),
    ("thursday", "6:00 PM - 8:00 PM"),
    ("friday", ""),
    ("saturday", "9:00 AM - 12:00 PM"),
    ("sunday", "1:00 PM - 4:00 PM"),
]


def _split(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def coach_to_dict(coach: Coach) -> Dict:
    """Convert Coach model (with children loaded) to dict, splitting list fields."""
    return {
        "id": coach.id,
        "name": coach.name,
        "title": coach.title,
        "image": coach.image,
        "rating": coach.rating,
        "review_count": coach.review_count,
        "specialties": _split(coach.specialties),
        "min_group_size": coach.min_group_size,
        "max_group_size": coach.max_group_size,
        "session_length": coach.session_length,
        "hourly_rate": coach.hourly_rate,
        "location": coach.location,
        "virtual_available": coach.virtual_available,
        "bio": coach.bio,
        "experience": [
            {"id": e.id, "title": e.title, "company": e.company, "period": e.period}
            for e in coach.experience
        ],
        "certifications": [{"id": c.id, "name": c.name} for c in coach.certifications],
        "reviews": [
            {"id": r.id, "name": r.name, "rating": r.rating, "date": r.date, "comment": r.comment}
            for r in coach.reviews
        ],
        "availability": [
            {"id": a.id, "day": a.day, "times": _split(a.times)} for a in coach.availability
        ],
    }


def _with_profile():
    return select(Coach).options(
        selectinload(Coach.experience),
        selectinload(Coach.certifications),
        selectinload(Coach.reviews),
        selectinload(Coach.availability),
    )


async def get_coach(session: AsyncSession, coach_id: int) -> Optional[Dict]:
    """Full coach profile, or None if missing."""
    result = await session.execute(_with_profile().where(Coach.id == coach_id))
    coach = result.scalar_one_or_none()
    return coach_to_dict(coach) if coach else None


async def list_coaches(session: AsyncSession) -> List[Dict]:
    result = await session.execute(_with_profile().order_by(Coach.id.asc()))
    return [coach_to_dict(coach) for coach in result.scalars().all()]


async def seed_default_coach(session: AsyncSession) -> bool:
    """
    Create the default coach profile if there are no coaches yet.

    Returns:
        True if a coach was created
    """
    count_result = await session.execute(select(func.count(Coach.id)))
    if (count_result.scalar() or 0) > 0:
        return False

    coach = Coach(**DEFAULT_COACH)
    coach.experience = [
        CoachExperience(title=title, company=company, period=period)
        for title, company, period in DEFAULT_EXPERIENCE
    ]
    coach.certifications = [CoachCertification(name=name) for name in DEFAULT_CERTIFICATIONS]
    coach.reviews = [
        CoachReview(name=name, rating=rating, date=date, comment=comment)
        for name, rating, date, comment in DEFAULT_REVIEWS
    ]
    coach.availability = [CoachAvailability(day=day, times=times) for day, times in DEFAULT_AVAILABILITY]
    session.add(coach)
    await session.commit()

    logger.info(f"Seeded default coach profile ({coach.name})")
    return True
