from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.access_policy import Identity
from campus_events.auth_token import get_identity, get_identity_optional
from campus_events.database import get_db
from campus_events.models.event import Event
from campus_events.schemas import (
    DeleteResponse,
    EventListResponse,
    EventRead,
    EventResponse,
    Pagination,
)
from campus_events.services import event_workflow
from campus_events.services.event_queries import EventQueryParams, list_events

router = APIRouter(prefix="/events", tags=["Events"])


def _to_read(event: Event) -> EventRead:
    return EventRead.model_validate(event)


@router.get("", response_model=EventListResponse)
async def get_events(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    status: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    organizer: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    identity: Optional[Identity] = Depends(get_identity_optional),
):
    """List events. Anyone but an admin only ever sees approved events."""
    params = EventQueryParams(
        category=category,
        search=search,
        start_date=start_date,
        end_date=end_date,
        status=status,
        featured=featured,
        organizer=organizer,
        page=page,
        limit=limit,
    )
    result = await list_events(db, identity, params)
    return EventListResponse(
        data=[_to_read(e) for e in result.events],
        today_events=[_to_read(e) for e in result.today_events],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    event = await event_workflow.get_event(db, event_id)
    return EventResponse(data=_to_read(event))


@router.post("", response_model=EventResponse, status_code=201)
async def create_event(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    """Submit an event. Fields are checked against ``EventCreate`` after the role check."""
    event = await event_workflow.create_event(db, identity, payload)
    return EventResponse(data=_to_read(event))


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    event = await event_workflow.update_event(db, identity, event_id, payload)
    return EventResponse(data=_to_read(event))


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status(
    event_id: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    event = await event_workflow.change_status(db, identity, event_id, payload.get("status"))
    return EventResponse(data=_to_read(event))


@router.delete("/{event_id}", response_model=DeleteResponse)
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    await event_workflow.delete_event(db, identity, event_id)
    return DeleteResponse()
