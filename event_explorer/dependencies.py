"""FastAPI dependencies wiring stores, the popularity provider and services."""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from event_explorer.clients.stats_client import NullPopularityProvider, PopularityProvider
from event_explorer.database import get_db
from event_explorer.services.event_service import EventService
from event_explorer.services.request_service import RequestService
from event_explorer.services.request_status_service import RequestStatusService
from event_explorer.stores.event_store import EventStore
from event_explorer.stores.reference_store import ReferenceStore
from event_explorer.stores.request_store import RequestStore


def get_popularity_provider(request: Request) -> PopularityProvider:
    """Provider created at startup; falls back to the null one before startup ran."""
    provider = getattr(request.app.state, "popularity", None)
    return provider if provider is not None else NullPopularityProvider()


def get_event_service(
    db: Session = Depends(get_db),
    popularity: PopularityProvider = Depends(get_popularity_provider),
) -> EventService:
    return EventService(EventStore(db), ReferenceStore(db), popularity)


def get_request_service(db: Session = Depends(get_db)) -> RequestService:
    return RequestService(EventStore(db), RequestStore(db), ReferenceStore(db))


def get_request_status_service(db: Session = Depends(get_db)) -> RequestStatusService:
    return RequestStatusService(EventStore(db), RequestStore(db), ReferenceStore(db))


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
