# campus_events/schemas.py
# ------------------------------------------------------------
# Pydantic v2 schemas. JSON uses camelCase; Python attributes stay snake_case.
# ------------------------------------------------------------
from datetime import date, datetime
import re
from typing import Annotated, Any, List, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    field_validator,
)
from pydantic.alias_generators import to_camel

from campus_events.models.event import (
    DESCRIPTION_MAX_LENGTH,
    INTEGER_MAX,
    LINK_MAX_LENGTH,
    LOCATION_MAX_LENGTH,
    TIME_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    EventCategory,
    EventStatus,
)
from campus_events.security import MIN_PASSWORD_LENGTH


_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_SCRIPT_TAG_RE = re.compile(r"<\s*/?\s*script", re.IGNORECASE)


def _check_link_length(value: HttpUrl) -> HttpUrl:
    if len(str(value)) > LINK_MAX_LENGTH:
        raise ValueError(f"URL must be at most {LINK_MAX_LENGTH} characters")
    return value


# A field called ``date`` shadows the type inside a class body.
EventDate = date
LinkUrl = Annotated[HttpUrl, AfterValidator(_check_link_length)]


def _sanitize_single_line_text(value: str | None, *, allow_empty: bool = False) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not allow_empty and not cleaned:
        raise ValueError("Value cannot be empty")
    if any(ch in {"\n", "\r"} for ch in cleaned):
        raise ValueError("Value must be a single line of text")
    if "<" in cleaned or ">" in cleaned:
        raise ValueError("HTML tags are not allowed in this field")
    return cleaned


def _sanitize_multiline_text(value: str | None) -> str | None:
    if value is None:
        return value
    if not isinstance(value, str):
        raise ValueError("Expected string input")
    cleaned = _CONTROL_CHAR_RE.sub("", value).strip()
    if not cleaned:
        raise ValueError("Value cannot be empty")
    if _SCRIPT_TAG_RE.search(cleaned):
        raise ValueError("Script tags are not allowed")
    return cleaned


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("Value cannot be null")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================
# Users
# ============================================================

class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)
    # Admin is never self-assigned; see scripts/create_admin.py.
    role: Literal["student", "organizer"] = "student"
    organization: Optional[str] = Field(default=None, max_length=200)

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, value: str) -> str:
        return _sanitize_single_line_text(value)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserProfileRead(CamelModel):
    id: int
    name: str
    email: str
    role: str
    organization: Optional[str] = None
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfileRead


# ============================================================
# Events
# ============================================================

class EventUpdate(CamelModel):
    """Writable event fields for a partial edit.

    Only keys present in the payload are applied. Fields the event cannot do
    without reject an explicit ``null``; the optional ones accept it (or a
    blank string) to clear the value. ``organizer``, ``organizerName`` and
    ``status`` are not fields here and are dropped with any other unknown key.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    category: Optional[EventCategory] = None
    date: Optional[EventDate] = None
    time: Optional[str] = Field(default=None, max_length=TIME_MAX_LENGTH)
    end_time: Optional[str] = Field(default=None, max_length=TIME_MAX_LENGTH)
    location: Optional[str] = Field(default=None, max_length=LOCATION_MAX_LENGTH)
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, max_length=50)
    featured: Optional[bool] = None
    max_attendees: Optional[int] = Field(default=None, gt=0, le=INTEGER_MAX)
    registration_link: Optional[LinkUrl] = None
    image_url: Optional[LinkUrl] = None

    @field_validator("title", "time", "location", mode="before")
    @classmethod
    def _clean_single_line_fields(cls, value: Any) -> str:
        return _sanitize_single_line_text(_reject_null(value))

    @field_validator("description", mode="before")
    @classmethod
    def _clean_description(cls, value: Any) -> str:
        return _sanitize_multiline_text(_reject_null(value))

    @field_validator("end_time", "contact_phone", mode="before")
    @classmethod
    def _clean_optional_text(cls, value: Any) -> Optional[str]:
        return _sanitize_single_line_text(value, allow_empty=True) or None

    @field_validator("category", "featured", mode="before")
    @classmethod
    def _require_value(cls, value: Any) -> Any:
        return _reject_null(value)

    @field_validator("contact_email", mode="before")
    @classmethod
    def _clean_contact_email(cls, value: Any) -> Any:
        value = _reject_null(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("date", mode="before")
    @classmethod
    def _date_from_timestamp(cls, value: Any) -> Any:
        # Clients often send a full ISO timestamp; only the calendar day is kept.
        value = _reject_null(value)
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
            except ValueError:
                return value
        return value

    @field_validator("registration_link", "image_url", "max_attendees", mode="before")
    @classmethod
    def _clear_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class EventCreate(EventUpdate):
    """Payload for a new event: the core fields are required."""

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    description: str = Field(max_length=DESCRIPTION_MAX_LENGTH)
    category: EventCategory = EventCategory.other
    date: EventDate
    time: str = Field(max_length=TIME_MAX_LENGTH)
    location: str = Field(max_length=LOCATION_MAX_LENGTH)
    contact_email: EmailStr
    featured: bool = False


class EventStatusUpdate(BaseModel):
    status: EventStatus


class OrganizerSummary(CamelModel):
    id: int
    name: str
    email: str


class EventRead(CamelModel):
    id: int
    title: str
    description: str
    category: str
    date: EventDate
    time: str
    end_time: Optional[str] = None
    location: str
    organizer: Optional[OrganizerSummary] = None
    organizer_name: str
    contact_email: str
    contact_phone: Optional[str] = None
    status: str
    featured: bool = False
    max_attendees: Optional[int] = None
    registration_link: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class EventResponse(CamelModel):
    success: bool = True
    data: EventRead


class EventListResponse(CamelModel):
    success: bool = True
    data: List[EventRead]
    today_events: List[EventRead]
    pagination: Pagination


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Event deleted"
