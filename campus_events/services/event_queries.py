"""Turn untrusted listing parameters into a repository query.

Bad filter input never raises here: an unusable value is dropped (and
logged) so the listing still answers.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, List, Optional

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.access_policy import Action, Identity, can_perform
from campus_events.models.event import INTEGER_MAX, Event, EventStatus
from campus_events.services.event_repository import EventFilter, EventRepository
from campus_events.validation import CATEGORY_VALUES, STATUS_VALUES, parse_date

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_PAGE_LIMIT = int(os.getenv("EVENTS_MAX_PAGE_LIMIT", "100"))
# Keeps the computed offset bindable on every store.
MAX_PAGE = INTEGER_MAX


@dataclass
class EventQueryParams:
    """Raw query-string values, exactly as received."""

    category: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[str] = None
    featured: Optional[str] = None
    organizer: Optional[str] = None
    page: Any = None
    limit: Any = None


@dataclass
class EventPage:
    events: List[Event]
    today_events: List[Event]
    page: int
    limit: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.pages = math.ceil(self.total / self.limit) if self.limit else 0


def coerce_positive_int(value: Any, default: int, maximum: Optional[int] = None) -> int:
    """Parse a positive int, falling back to ``default`` and clamping to ``maximum``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if maximum is not None and number > maximum:
        return maximum
    return number


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def resolve_status(requested: Optional[str], identity: Optional[Identity]) -> Optional[str]:
    """Non-admins only ever see approved events; admins get what they ask for."""
    if not can_perform(identity, Action.view_all):
        return EventStatus.approved.value
    requested = _clean(requested)
    if requested is None:
        return None
    if requested not in STATUS_VALUES:
        logger.warning("Ignoring unknown status filter %r", requested)
        return None
    return requested


def build_event_filter(params: EventQueryParams, identity: Optional[Identity]) -> EventFilter:
    flt = EventFilter(status=resolve_status(params.status, identity))

    category = _clean(params.category)
    if category in CATEGORY_VALUES:
        flt.category = category

    flt.search = _clean(params.search)

    for attr, raw in (("start_date", params.start_date), ("end_date", params.end_date)):
        raw = _clean(raw)
        if raw is None:
            continue
        parsed = parse_date(raw)
        if parsed is None:
            logger.warning("Ignoring invalid %s filter %r", attr, raw)
            continue
        setattr(flt, attr, parsed)

    if _clean(params.featured) == "true":
        flt.featured = True

    organizer = _clean(params.organizer)
    if organizer is not None:
        try:
            organizer_id = int(organizer)
        except ValueError:
            logger.warning("Ignoring non-numeric organizer filter %r", organizer)
        else:
            if 1 <= organizer_id <= INTEGER_MAX:
                flt.organizer_id = organizer_id
            else:
                logger.warning("Ignoring out-of-range organizer filter %r", organizer)

    return flt


async def list_events(
    db: AsyncSession, identity: Optional[Identity], params: EventQueryParams
) -> EventPage:
    flt = build_event_filter(params, identity)
    page = coerce_positive_int(params.page, DEFAULT_PAGE, MAX_PAGE)
    limit = coerce_positive_int(params.limit, DEFAULT_LIMIT, MAX_PAGE_LIMIT)

    repo = EventRepository(db)
    events, total = await repo.find(flt, skip=(page - 1) * limit, limit=limit)
    today_events = await repo.find_today()
    return EventPage(events=events, today_events=today_events, page=page, limit=limit, total=total)


__all__ = [
    "EventPage",
    "EventQueryParams",
    "build_event_filter",
    "coerce_positive_int",
    "list_events",
    "resolve_status",
]
