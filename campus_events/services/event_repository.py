"""Persistence for events behind a store-agnostic interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.errors import NotFound, StoreUnavailable
from campus_events.models.event import INTEGER_MAX, Event, EventStatus, utcnow

logger = logging.getLogger(__name__)


@dataclass
class EventFilter:
    """Structured filter. ``None`` means "do not filter on this field"."""

    status: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    featured: Optional[bool] = None
    organizer_id: Optional[int] = None


def coerce_event_id(event_id: Any) -> int:
    """Turn a path/body id into an int; anything unusable is simply not found.

    Ids outside the range the id column can hold are reported the same way
    rather than reaching the store.
    """
    if isinstance(event_id, bool):
        raise NotFound()
    if isinstance(event_id, int):
        pk = event_id
    else:
        try:
            pk = int(str(event_id).strip())
        except (TypeError, ValueError):
            raise NotFound()
    if not 1 <= pk <= INTEGER_MAX:
        raise NotFound()
    return pk


class EventRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _rollback_and_raise(self, exc: SQLAlchemyError, action: str) -> None:
        logger.exception("Event store failure during %s", action)
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback after store failure also failed")
        raise StoreUnavailable() from exc

    @staticmethod
    def _conditions(flt: EventFilter) -> list:
        conds = []
        if flt.status is not None:
            conds.append(Event.status == flt.status)
        if flt.category is not None:
            conds.append(Event.category == flt.category)
        if flt.start_date is not None:
            conds.append(Event.date >= flt.start_date)
        if flt.end_date is not None:
            conds.append(Event.date <= flt.end_date)
        if flt.featured is not None:
            conds.append(Event.featured == flt.featured)
        if flt.organizer_id is not None:
            conds.append(Event.organizer_id == flt.organizer_id)
        if flt.search:
            conds.append(
                or_(
                    Event.title.icontains(flt.search, autoescape=True),
                    Event.description.icontains(flt.search, autoescape=True),
                )
            )
        return conds

    async def find(
        self, flt: EventFilter, *, skip: int = 0, limit: int = 12
    ) -> Tuple[List[Event], int]:
        """Events matching ``flt`` by date ascending, plus the unpaginated total."""
        conds = self._conditions(flt)
        stmt = (
            select(Event)
            .where(*conds)
            .order_by(Event.date.asc(), Event.id.asc())
            .offset(skip)
            .limit(limit)
        )
        count_stmt = select(func.count(Event.id)).where(*conds)
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
            total = (await self.db.execute(count_stmt)).scalar_one()
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "find")
        return list(rows), int(total)

    async def find_today(self, today: Optional[date] = None) -> List[Event]:
        """Approved events dated on the current server-local day."""
        day = today or date.today()
        stmt = (
            select(Event)
            .where(Event.status == EventStatus.approved.value, Event.date == day)
            .order_by(Event.time.asc(), Event.id.asc())
        )
        try:
            rows = (await self.db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "find_today")
        return list(rows)

    async def find_by_id(self, event_id: Any) -> Event:
        pk = coerce_event_id(event_id)
        stmt = select(Event).where(Event.id == pk).execution_options(populate_existing=True)
        try:
            event = (await self.db.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "find_by_id")
        if event is None:
            raise NotFound()
        return event

    async def insert(self, fields: Dict[str, Any]) -> Event:
        now = utcnow()
        event = Event(**fields, created_at=now, updated_at=now)
        self.db.add(event)
        try:
            await self.db.commit()
            await self.db.refresh(event, attribute_names=["organizer"])
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "insert")
        return event

    async def update_by_id(self, event_id: Any, fields: Dict[str, Any]) -> Event:
        """Write only the given columns in a single UPDATE and return the fresh row."""
        pk = coerce_event_id(event_id)
        values = dict(fields)
        values["updated_at"] = utcnow()
        stmt = (
            update(Event)
            .where(Event.id == pk)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "update_by_id")
        if result.rowcount == 0:
            raise NotFound()
        return await self.find_by_id(pk)

    async def delete_by_id(self, event_id: Any) -> None:
        pk = coerce_event_id(event_id)
        try:
            result = await self.db.execute(delete(Event).where(Event.id == pk))
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self._rollback_and_raise(exc, "delete_by_id")
        if result.rowcount == 0:
            raise NotFound()


__all__ = ["EventFilter", "EventRepository", "coerce_event_id"]
