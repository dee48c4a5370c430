import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from campus_events.database import Base


class EventCategory(str, enum.Enum):
    academic = "academic"
    cultural = "cultural"
    sports = "sports"
    workshop = "workshop"
    seminar = "seminar"
    club = "club"
    social = "social"
    other = "other"


class EventStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
TIME_MAX_LENGTH = 50
LOCATION_MAX_LENGTH = 255
LINK_MAX_LENGTH = 500

# Largest value an ``Integer`` column holds on every supported store
# (PostgreSQL ``integer`` is 32-bit).
INTEGER_MAX = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_date_status", "date", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False, default=EventCategory.other.value, index=True)

    date = Column(Date, nullable=False)
    time = Column(String(TIME_MAX_LENGTH), nullable=False)
    end_time = Column(String(TIME_MAX_LENGTH), nullable=True)
    location = Column(String(LOCATION_MAX_LENGTH), nullable=False)

    # Written once at creation; the workflow strips both from every update.
    organizer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    organizer_name = Column(String(100), nullable=False)

    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=True)

    status = Column(String(20), nullable=False, default=EventStatus.pending.value)
    featured = Column(Boolean, nullable=False, default=False)

    max_attendees = Column(Integer, nullable=True)
    registration_link = Column(String(LINK_MAX_LENGTH), nullable=True)
    image_url = Column(String(LINK_MAX_LENGTH), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    organizer = relationship("User", lazy="selectin")
