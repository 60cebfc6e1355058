"""Admin event routes: moderation search and publish/reject."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from event_explorer.config import settings
from event_explorer.dependencies import get_event_service
from event_explorer.models.event import EventState
from event_explorer.schemas.event import EventAdminPatch, EventFullOut
from event_explorer.services.event_service import EventService

router = APIRouter()


@router.get("", response_model=list[EventFullOut])
def search_events(
    users: list[int] = Query(default=[]),
    states: list[EventState] = Query(default=[]),
    categories: list[int] = Query(default=[]),
    range_start: Optional[datetime] = Query(None),
    range_end: Optional[datetime] = Query(None),
    offset: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0),
    service: EventService = Depends(get_event_service),
):
    items = service.list_by_admin_filter(
        users=users,
        states=states,
        categories=categories,
        range_start=range_start,
        range_end=range_end,
        offset=offset,
        size=size,
    )
    return [EventFullOut.from_event(i.event, i.views) for i in items]


@router.patch("/{event_id}", response_model=EventFullOut)
def moderate_event(
    event_id: int, payload: EventAdminPatch, service: EventService = Depends(get_event_service)
):
    """Edit any unpublished event; ``PUBLISH_EVENT`` / ``REJECT_EVENT`` decide its fate."""
    item = service.edit_by_admin(event_id, payload)
    return EventFullOut.from_event(item.event, item.views)
