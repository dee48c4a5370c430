"""Event lifecycle: creation, edits, status changes and deletion.

Every operation takes the caller identity explicitly and checks policy and
field rules before the repository is touched.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.access_policy import Action, Identity, ensure_can_perform
from campus_events.models.event import Event, EventStatus
from campus_events.models.user import Role
from campus_events.services.event_repository import EventRepository
from campus_events.validation import clean_event_fields, clean_status

logger = logging.getLogger(__name__)

# Never accepted from a client payload, whoever the caller is.
PROTECTED_FIELDS = frozenset(
    {
        "id",
        "organizer",
        "organizer_id",
        "organizerName",
        "organizer_name",
        "status",
        "created_at",
        "createdAt",
        "updated_at",
        "updatedAt",
    }
)


def initial_status(role: Optional[str]) -> str:
    """Admins publish directly; everyone else waits for review."""
    if role == Role.admin.value:
        return EventStatus.approved.value
    return EventStatus.pending.value


def strip_protected_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}


async def create_event(db: AsyncSession, identity: Optional[Identity], payload: Mapping[str, Any]) -> Event:
    ensure_can_perform(identity, Action.create)
    fields = clean_event_fields(strip_protected_fields(payload))
    fields.update(
        organizer_id=identity.id,
        organizer_name=identity.name,
        status=initial_status(identity.role),
    )
    event = await EventRepository(db).insert(fields)
    logger.info("Event %s created by user %s with status %s", event.id, identity.id, event.status)
    return event


async def get_event(db: AsyncSession, event_id: Any) -> Event:
    return await EventRepository(db).find_by_id(event_id)


async def update_event(
    db: AsyncSession, identity: Optional[Identity], event_id: Any, payload: Mapping[str, Any]
) -> Event:
    """Apply a partial edit.

    Status is left alone even when a non-admin edits an approved or rejected
    event; only ``change_status`` moves it.
    """
    repo = EventRepository(db)
    event = await repo.find_by_id(event_id)
    ensure_can_perform(identity, Action.update, event)

    fields = clean_event_fields(strip_protected_fields(payload), partial=True)
    if not fields:
        return event

    updated = await repo.update_by_id(event.id, fields)
    logger.info("Event %s updated by user %s (%s)", updated.id, identity.id, ", ".join(sorted(fields)))
    return updated


async def change_status(db: AsyncSession, identity: Optional[Identity], event_id: Any, status: Any) -> Event:
    """Set any status unconditionally; repeating the same status is a no-op change."""
    ensure_can_perform(identity, Action.update_status)
    new_status = clean_status(status)
    updated = await EventRepository(db).update_by_id(event_id, {"status": new_status})
    logger.info("Event %s status set to %s by admin %s", updated.id, new_status, identity.id)
    return updated


async def delete_event(db: AsyncSession, identity: Optional[Identity], event_id: Any) -> None:
    repo = EventRepository(db)
    event = await repo.find_by_id(event_id)
    ensure_can_perform(identity, Action.delete, event)
    await repo.delete_by_id(event.id)
    logger.info("Event %s deleted by user %s", event.id, identity.id)


__all__ = [
    "change_status",
    "create_event",
    "delete_event",
    "get_event",
    "initial_status",
    "strip_protected_fields",
    "update_event",
]
