"""Participation request routes for the requesting user."""
from fastapi import APIRouter, Depends, Query, status

from event_explorer.dependencies import get_request_service
from event_explorer.schemas.request import RequestOut
from event_explorer.services.request_service import RequestService

router = APIRouter()


@router.post("", response_model=RequestOut, status_code=status.HTTP_201_CREATED)
def create_request(
    user_id: int,
    event_id: int = Query(...),
    service: RequestService = Depends(get_request_service),
):
    """Ask to participate in a published event."""
    return service.create(user_id, event_id)


@router.get("", response_model=list[RequestOut])
def list_own_requests(user_id: int, service: RequestService = Depends(get_request_service)):
    return service.list_for_user(user_id)


@router.patch("/{request_id}/cancel", response_model=RequestOut)
def cancel_request(user_id: int, request_id: int, service: RequestService = Depends(get_request_service)):
    return service.cancel(user_id, request_id)
