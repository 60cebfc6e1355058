"""Public catalogue of published events."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from event_explorer.config import settings
from event_explorer.dependencies import client_ip, get_event_service
from event_explorer.schemas.event import EventFullOut, EventShortOut, EventSort
from event_explorer.services.event_service import EventService

router = APIRouter()


@router.get("", response_model=list[EventShortOut])
def list_events(
    text: Optional[str] = Query(None),
    categories: list[int] = Query(default=[]),
    paid: Optional[bool] = Query(None),
    range_start: Optional[datetime] = Query(None),
    range_end: Optional[datetime] = Query(None),
    only_available: bool = Query(False),
    sort: EventSort = Query(EventSort.EVENT_DATE),
    offset: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0),
    ip: str = Depends(client_ip),
    service: EventService = Depends(get_event_service),
):
    items = service.list_published(
        client_ip=ip,
        text=text,
        categories=categories,
        paid=paid,
        range_start=range_start,
        range_end=range_end,
        only_available=only_available,
        sort=sort,
        offset=offset,
        size=size,
    )
    return [EventShortOut.from_event(i.event, i.views) for i in items]


@router.get("/{event_id}", response_model=EventFullOut)
def get_event(
    event_id: int,
    ip: str = Depends(client_ip),
    service: EventService = Depends(get_event_service),
):
    item = service.get_published(event_id, ip)
    return EventFullOut.from_event(item.event, item.views)
