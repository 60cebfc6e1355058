"""Event lifecycle: submission, owner/admin edits and the read projections.

State machine::

    PENDING --owner CANCEL_REVIEW--> CANCELED
    CANCELED --owner SEND_TO_REVIEW--> PENDING
    PENDING --admin PUBLISH_EVENT--> PUBLISHED   (final)
    PENDING/CANCELED --admin REJECT_EVENT--> CANCELED

Owner actions whose source state does not match are ignored; admin actions are
strict. Every returned event is paired with its view count from the popularity
provider, which never fails the operation.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from event_explorer.clients.stats_client import EVENTS_URI, PopularityProvider, event_uri
from event_explorer.config import Settings, settings
from event_explorer.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from event_explorer.models.category import Category
from event_explorer.models.event import Event, EventState
from event_explorer.schemas.event import (
    AdminStateAction,
    EventAdminPatch,
    EventCreate,
    EventOwnerPatch,
    EventPatch,
    EventSort,
    OwnerStateAction,
)
from event_explorer.stores.event_store import EventStore
from event_explorer.stores.reference_store import ReferenceStore
from event_explorer.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

# Admin listing without a lower bound starts here
EPOCH_START = datetime(1900, 1, 1)


@dataclass
class EventWithViews:
    event: Event
    views: int


class EventService:
    def __init__(
        self,
        events: EventStore,
        refs: ReferenceStore,
        popularity: PopularityProvider,
        config: Settings = settings,
    ):
        self._events = events
        self._refs = refs
        self._popularity = popularity
        self._config = config

    # -- helpers ---------------------------------------------------------

    def _require(self, event_id: int) -> Event:
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError(f"Event with id={event_id} was not found")
        return event

    def _require_for_update(self, event_id: int) -> Event:
        event = self._events.get_for_update(event_id)
        if event is None:
            raise NotFoundError(f"Event with id={event_id} was not found")
        return event

    @staticmethod
    def _check_lead_time(event_date: datetime, hours: int) -> None:
        earliest = utcnow() + timedelta(hours=hours)
        if as_utc(event_date) < earliest:
            raise InvalidArgumentError(
                f"Event date must be at least {hours} hours in the future, got {event_date.isoformat()}"
            )

    @staticmethod
    def _apply_patch(event: Event, patch: EventPatch, category: Optional[Category]) -> None:
        if patch.title is not None:
            event.title = patch.title
        if patch.annotation is not None:
            event.annotation = patch.annotation
        if patch.description is not None:
            event.description = patch.description
        if category is not None:
            event.category_id = category.id
            event.category = category
        if patch.location is not None:
            event.location_lat = patch.location.lat
            event.location_lon = patch.location.lon
        if patch.event_date is not None:
            event.event_date = as_utc(patch.event_date)
        if patch.paid is not None:
            event.paid = patch.paid
        if patch.participant_limit is not None:
            event.participant_limit = patch.participant_limit
        if patch.request_moderation is not None:
            event.request_moderation = patch.request_moderation

    @staticmethod
    def _check_participant_limit(event: Event, patch: EventPatch) -> None:
        limit = patch.participant_limit
        if limit is not None and limit != 0 and limit < event.confirmed_requests:
            raise ConflictError(
                f"Participant limit {limit} is below the {event.confirmed_requests} "
                f"confirmed requests of event {event.id}"
            )

    def _patched_category(self, patch: EventPatch) -> Optional[Category]:
        if patch.category is None:
            return None
        return self._refs.get_category(patch.category)

    def _commit(self, event: Event) -> None:
        self._events.session.commit()
        self._events.session.refresh(event)

    def _views_window(self) -> tuple[datetime, datetime]:
        end = utcnow()
        return end - timedelta(days=self._config.VIEWS_WINDOW_DAYS), end

    def view_counts(self, events: Sequence[Event]) -> dict[int, int]:
        """Views per event id over the configured window; zeros when the provider fails."""
        if not events:
            return {}
        start, end = self._views_window()
        ids = [e.id for e in events]
        try:
            counts = self._popularity.get_view_counts(ids, start, end)
        except Exception as e:
            # View counts are decoration; provider errors never reach the caller
            logger.warning("Popularity provider failed for %d events: %s", len(ids), e)
            counts = {}
        return {event_id: counts.get(event_id, 0) for event_id in ids}

    def _record_view(self, uri: str, ip: str) -> None:
        try:
            self._popularity.record_view(uri, ip)
        except Exception as e:
            logger.warning("Popularity provider failed to record %s: %s", uri, e)

    def _with_views(self, events: Sequence[Event]) -> list[EventWithViews]:
        counts = self.view_counts(events)
        return [EventWithViews(event, counts.get(event.id, 0)) for event in events]

    def _one_with_views(self, event: Event) -> EventWithViews:
        return self._with_views([event])[0]

    # -- mutations -------------------------------------------------------

    def submit(self, initiator_id: int, new_event: EventCreate) -> EventWithViews:
        """Create an event in PENDING for ``initiator_id``."""
        initiator = self._refs.get_user(initiator_id)
        category = self._refs.get_category(new_event.category)
        self._check_lead_time(new_event.event_date, self._config.OWNER_LEAD_TIME_HOURS)

        event = Event(
            title=new_event.title,
            annotation=new_event.annotation,
            description=new_event.description,
            category=category,
            initiator=initiator,
            location_lat=new_event.location.lat,
            location_lon=new_event.location.lon,
            event_date=as_utc(new_event.event_date),
            paid=new_event.paid,
            participant_limit=new_event.participant_limit,
            request_moderation=new_event.request_moderation,
            state=EventState.PENDING,
            created_on=utcnow(),
            confirmed_requests=0,
        )
        self._events.add(event)
        self._commit(event)
        logger.info("Event %d '%s' submitted by user %d", event.id, event.title, initiator_id)
        return EventWithViews(event, 0)

    def edit_by_owner(self, initiator_id: int, event_id: int, patch: EventOwnerPatch) -> EventWithViews:
        """Apply an owner patch to a not-yet-published event."""
        self._refs.get_user(initiator_id)
        event = self._require_for_update(event_id)
        if event.initiator_id != initiator_id:
            raise ForbiddenError(f"User {initiator_id} is not the initiator of event {event_id}")
        if event.state == EventState.PUBLISHED:
            raise InvalidStateError("Only pending or canceled events can be changed")
        if patch.event_date is not None:
            self._check_lead_time(patch.event_date, self._config.OWNER_LEAD_TIME_HOURS)
        category = self._patched_category(patch)

        previous = event.state
        if patch.state_action is not None:
            self._apply_owner_action(event, patch.state_action)
        self._apply_patch(event, patch, category)
        self._commit(event)
        logger.info(
            "Event %d edited by owner %d (state %s -> %s)",
            event_id, initiator_id, previous.value, event.state.value,
        )
        return self._one_with_views(event)

    @staticmethod
    def _apply_owner_action(event: Event, action: OwnerStateAction) -> None:
        if action is OwnerStateAction.SEND_TO_REVIEW:
            if event.state == EventState.CANCELED:
                event.state = EventState.PENDING
        elif action is OwnerStateAction.CANCEL_REVIEW:
            if event.state == EventState.PENDING:
                event.state = EventState.CANCELED
        else:
            raise InvalidArgumentError(f"Unknown state action: {action}")

    def edit_by_admin(self, event_id: int, patch: EventAdminPatch) -> EventWithViews:
        """Apply an admin patch; publishing and rejecting are strict transitions."""
        event = self._require_for_update(event_id)
        if patch.event_date is not None:
            self._check_lead_time(patch.event_date, self._config.ADMIN_LEAD_TIME_HOURS)
        self._check_participant_limit(event, patch)
        category = self._patched_category(patch)

        previous = event.state
        if patch.state_action is not None:
            self._apply_admin_action(event, patch.state_action)
        self._apply_patch(event, patch, category)
        self._commit(event)
        logger.info("Event %d edited by admin (state %s -> %s)", event_id, previous.value, event.state.value)
        return self._one_with_views(event)

    @staticmethod
    def _apply_admin_action(event: Event, action: AdminStateAction) -> None:
        if action is AdminStateAction.PUBLISH_EVENT:
            if event.state != EventState.PENDING:
                raise InvalidStateError(
                    f"Cannot publish the event because it's not in the right state: {event.state.value}; "
                    "event must be PENDING"
                )
            event.state = EventState.PUBLISHED
            event.published_on = utcnow()
        elif action is AdminStateAction.REJECT_EVENT:
            if event.state == EventState.PUBLISHED:
                raise InvalidStateError("Cannot reject the event because it's already published")
            event.state = EventState.CANCELED
        else:
            raise InvalidArgumentError(f"Unknown state action: {action}")

    # -- reads -----------------------------------------------------------

    def get(self, event_id: int) -> EventWithViews:
        return self._one_with_views(self._require(event_id))

    def get_owned(self, initiator_id: int, event_id: int) -> EventWithViews:
        self._refs.get_user(initiator_id)
        event = self._require(event_id)
        if event.initiator_id != initiator_id:
            raise ForbiddenError(f"User {initiator_id} is not the initiator of event {event_id}")
        return self._one_with_views(event)

    def list_by_owner(self, initiator_id: int, offset: int, size: int) -> list[EventWithViews]:
        self._refs.get_user(initiator_id)
        events = self._events.list_by_initiator(initiator_id, offset, size)
        logger.debug("User %d owns %d events in page offset=%d", initiator_id, len(events), offset)
        return self._with_views(events)

    def list_by_admin_filter(
        self,
        users: Optional[Sequence[int]] = None,
        states: Optional[Sequence[EventState]] = None,
        categories: Optional[Sequence[int]] = None,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
        offset: int = 0,
        size: int = 10,
    ) -> list[EventWithViews]:
        start = as_utc(range_start) if range_start else as_utc(EPOCH_START)
        end = as_utc(range_end) if range_end else utcnow() + timedelta(days=365 * 10)
        if start > end:
            raise InvalidArgumentError("range_start must not be after range_end")
        events = self._events.search_admin(users, states, categories, start, end, offset, size)
        return self._with_views(events)

    def list_published(
        self,
        client_ip: str,
        text: Optional[str] = None,
        categories: Optional[Sequence[int]] = None,
        paid: Optional[bool] = None,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
        only_available: bool = False,
        sort: EventSort = EventSort.EVENT_DATE,
        offset: int = 0,
        size: int = 10,
    ) -> list[EventWithViews]:
        """Public catalogue of published events. Records one view of the listing."""
        now = utcnow()
        start = as_utc(range_start) if range_start else now
        end = as_utc(range_end) if range_end else now + timedelta(days=365)
        if start > end:
            raise InvalidArgumentError("range_start must not be after range_end")

        query = self._events.search_published(text, categories, paid, start, end, only_available)
        self._record_view(EVENTS_URI, client_ip)

        if sort is EventSort.VIEWS:
            ranked = self._with_views(query.all())
            ranked.sort(key=lambda item: (-item.views, -as_utc(item.event.event_date).timestamp(), item.event.id))
            return ranked[offset:offset + size]

        events = (
            query.order_by(Event.event_date.desc(), Event.id.asc())
            .offset(offset)
            .limit(size)
            .all()
        )
        return self._with_views(events)

    def get_published(self, event_id: int, client_ip: str) -> EventWithViews:
        """Public detail view; unpublished events do not exist for the public."""
        event = self._events.get(event_id)
        if event is None or event.state != EventState.PUBLISHED:
            raise NotFoundError(f"Event with id={event_id} was not found")
        self._record_view(event_uri(event_id), client_ip)
        return self._one_with_views(event)
