"""
SQLAlchemy ORM models for the training session booking system.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sessionbook.database.db import Base


class Coach(Base):
    """Coach profile. The site runs with a single implicit coach."""

    __tablename__ = "coaches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    title = Column(String, nullable=True)
    image = Column(String, nullable=True)
    rating = Column(Float, nullable=True)
    review_count = Column(Integer, default=0, nullable=False)
    specialties = Column(Text, nullable=False, default="")  # Comma-separated
    min_group_size = Column(Integer, nullable=True)
    max_group_size = Column(Integer, nullable=True)
    session_length = Column(Integer, nullable=True)  # Minutes
    hourly_rate = Column(Float, nullable=True)
    location = Column(String, nullable=True)
    virtual_available = Column(Boolean, default=False, nullable=False)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    experience = relationship(
        "CoachExperience", back_populates="coach", cascade="all, delete-orphan"
    )
    certifications = relationship(
        "CoachCertification", back_populates="coach", cascade="all, delete-orphan"
    )
    reviews = relationship("CoachReview", back_populates="coach", cascade="all, delete-orphan")
    availability = relationship(
        "CoachAvailability", back_populates="coach", cascade="all, delete-orphan"
    )
    sessions = relationship("Session", back_populates="coach")


class CoachExperience(Base):
    """Past coaching positions shown on the coach profile."""

    __tablename__ = "coach_experience"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    period = Column(String, nullable=False)  # e.g. "2015 - Present"

    coach = relationship("Coach", back_populates="experience")


class CoachCertification(Base):
    """Coach certifications."""

    __tablename__ = "coach_certifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)

    coach = relationship("Coach", back_populates="certifications")


class CoachReview(Base):
    """Testimonials shown on the coach profile."""

    __tablename__ = "coach_reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    rating = Column(Integer, nullable=False)
    date = Column(String, nullable=False)  # Display string, e.g. "June 15, 2023"
    comment = Column(Text, nullable=False)

    coach = relationship("Coach", back_populates="reviews")


class CoachAvailability(Base):
    """Weekly availability windows."""

    __tablename__ = "coach_availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    day = Column(String, nullable=False)  # "monday" .. "sunday"
    times = Column(String, nullable=False, default="")  # Comma-separated time ranges

    coach = relationship("Coach", back_populates="availability")


class Session(Base):
    """Scheduled training sessions with a participant cap."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    coach_id = Column(Integer, ForeignKey("coaches.id", ondelete="SET NULL"), nullable=True)
    sport = Column(String(20), nullable=False, default="volleyball")
    age_group = Column(String(50), nullable=False)
    subgroup = Column(String(50), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)  # UTC; bare dates stored at 12:00 UTC
    time = Column(String(20), nullable=False)  # Time range, e.g. "1:00 PM - 2:30 PM"
    location = Column(String(100), nullable=False)  # Plain string, no FK to locations
    address = Column(String(200), nullable=False)
    max_participants = Column(Integer, nullable=False)
    current_participants = Column(Integer, default=0, nullable=False)  # Cached count
    price = Column(Float, default=0, nullable=False)
    focus = Column(String(100), nullable=True)
    is_visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    coach = relationship("Coach", back_populates="sessions")
    registrations = relationship(
        "Registration",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Registration.created_at",
    )

    __table_args__ = (
        Index("idx_sessions_date", "date"),
        Index("idx_sessions_is_visible", "is_visible"),
    )


class Registration(Base):
    """One player's signup for a session."""

    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    player_name = Column(String(50), nullable=False)
    player_age = Column(Integer, nullable=True)
    parent_name = Column(String(50), nullable=False)
    parent_email = Column(String(100), nullable=False)  # Stored lowercase
    parent_phone = Column(String(20), nullable=False)
    emergency_contact = Column(String(50), nullable=True)
    emergency_phone = Column(String(20), nullable=True)
    medical_info = Column(Text, nullable=True)
    experience = Column(String(200), nullable=True)
    special_notes = Column(String(300), nullable=True)
    cancellation_token = Column(String(64), nullable=True, unique=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)  # Session start - 24h, UTC
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    session = relationship("Session", back_populates="registrations")

    __table_args__ = (
        Index("idx_registrations_session", "session_id"),
        Index("idx_registrations_parent_email", "parent_email"),
        Index("idx_registrations_token", "cancellation_token"),
    )


class Location(Base):
    """Denormalized cache of venue names and addresses reused across sessions."""

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    address = Column(String(200), nullable=False)
    last_used = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_locations_name", "name"),
        Index("idx_locations_last_used", "last_used"),
    )
