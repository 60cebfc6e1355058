"""Private (initiator) event routes, including moderation of the event's requests."""
from fastapi import APIRouter, Depends, Query, status

from event_explorer.config import settings
from event_explorer.dependencies import get_event_service, get_request_service, get_request_status_service
from event_explorer.schemas.event import EventCreate, EventFullOut, EventOwnerPatch, EventShortOut
from event_explorer.schemas.request import RequestOut, StatusUpdateIn, StatusUpdateOut
from event_explorer.services.event_service import EventService
from event_explorer.services.request_service import RequestService
from event_explorer.services.request_status_service import RequestStatusService

router = APIRouter()


@router.post("", response_model=EventFullOut, status_code=status.HTTP_201_CREATED)
def submit_event(user_id: int, payload: EventCreate, service: EventService = Depends(get_event_service)):
    """Create an event; it waits in PENDING for admin review."""
    item = service.submit(user_id, payload)
    return EventFullOut.from_event(item.event, item.views)


@router.get("", response_model=list[EventShortOut])
def list_own_events(
    user_id: int,
    offset: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0),
    service: EventService = Depends(get_event_service),
):
    return [EventShortOut.from_event(i.event, i.views) for i in service.list_by_owner(user_id, offset, size)]


@router.get("/{event_id}", response_model=EventFullOut)
def get_own_event(user_id: int, event_id: int, service: EventService = Depends(get_event_service)):
    item = service.get_owned(user_id, event_id)
    return EventFullOut.from_event(item.event, item.views)


@router.patch("/{event_id}", response_model=EventFullOut)
def edit_own_event(
    user_id: int,
    event_id: int,
    payload: EventOwnerPatch,
    service: EventService = Depends(get_event_service),
):
    """Edit a pending or canceled event; ``state_action`` resubmits or withdraws it."""
    item = service.edit_by_owner(user_id, event_id, payload)
    return EventFullOut.from_event(item.event, item.views)


@router.get("/{event_id}/requests", response_model=list[RequestOut])
def list_event_requests(
    user_id: int, event_id: int, service: RequestService = Depends(get_request_service)
):
    """All participation requests for the initiator's event."""
    return service.list_for_event(user_id, event_id)


@router.patch("/{event_id}/requests", response_model=StatusUpdateOut)
def change_request_status(
    user_id: int,
    event_id: int,
    payload: StatusUpdateIn,
    service: RequestStatusService = Depends(get_request_status_service),
):
    """Confirm or reject a batch of pending requests."""
    result = service.change_status(user_id, event_id, payload.request_ids, payload.status)
    return StatusUpdateOut(
        confirmed_requests=[RequestOut.model_validate(r) for r in result.confirmed],
        rejected_requests=[RequestOut.model_validate(r) for r in result.rejected],
    )
