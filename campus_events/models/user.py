import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime

from campus_events.database import Base


class Role(str, enum.Enum):
    student = "student"
    organizer = "organizer"
    admin = "admin"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column("hashed_password", String, nullable=False)
    role = Column(String(20), nullable=False, default=Role.student.value)
    organization = Column(String(200), nullable=True)
    created_at = Column(DateTime, default=_utcnow)

