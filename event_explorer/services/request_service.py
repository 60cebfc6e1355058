"""Participation request admission and self-service cancellation."""
import logging

from sqlalchemy.exc import IntegrityError

from event_explorer.config import Settings, settings
from event_explorer.errors import ConflictError, ForbiddenError, NotFoundError
from event_explorer.models.event import EventState
from event_explorer.models.request import ParticipationRequest, RequestStatus
from event_explorer.services import capacity
from event_explorer.stores.event_store import EventStore
from event_explorer.stores.reference_store import ReferenceStore
from event_explorer.stores.request_store import RequestStore
from event_explorer.timeutils import utcnow

logger = logging.getLogger(__name__)

_CANCELABLE = (RequestStatus.PENDING, RequestStatus.REJECTED, RequestStatus.CANCELED)


class RequestService:
    def __init__(
        self,
        events: EventStore,
        requests: RequestStore,
        refs: ReferenceStore,
        config: Settings = settings,
    ):
        self._events = events
        self._requests = requests
        self._refs = refs
        self._config = config

    def create(self, requester_id: int, event_id: int) -> ParticipationRequest:
        """Admit ``requester_id`` to ``event_id``.

        The request is CONFIRMED straight away for unlimited events and events
        without moderation, otherwise it waits in PENDING for the organizer.
        """
        self._refs.get_user(requester_id)

        def admit() -> ParticipationRequest:
            event = self._events.get_for_update(event_id)
            if event is None:
                raise NotFoundError(f"Event with id={event_id} was not found")
            if event.initiator_id == requester_id:
                raise ConflictError("The initiator of the event cannot request participation in it")
            if event.state != EventState.PUBLISHED:
                raise ConflictError("Cannot participate in an unpublished event")
            if self._requests.find_active(event_id, requester_id) is not None:
                raise ConflictError(
                    f"User {requester_id} has already requested participation in event {event_id}"
                )
            if not event.has_free_slot:
                raise ConflictError(f"The participant limit of event {event_id} has been reached")

            if event.is_unlimited or not event.request_moderation:
                status = RequestStatus.CONFIRMED
            else:
                status = RequestStatus.PENDING
            # A pending admission still swaps the counter so it serializes with confirmations
            capacity.claim_slots(self._events, event, 1 if status == RequestStatus.CONFIRMED else 0)

            request = ParticipationRequest(
                event_id=event_id,
                requester_id=requester_id,
                status=status,
                created=utcnow(),
            )
            return self._requests.add(request)

        try:
            request = capacity.run_in_transaction(
                self._requests.session, admit, self._config.CAPACITY_RETRY_ATTEMPTS
            )
        except IntegrityError as e:
            logger.warning("Duplicate request by user %d for event %d: %s", requester_id, event_id, e.orig)
            raise ConflictError(
                f"User {requester_id} has already requested participation in event {event_id}"
            ) from e

        logger.info(
            "Request %d created by user %d for event %d with status %s",
            request.id, requester_id, event_id, request.status.value,
        )
        return request

    def cancel(self, requester_id: int, request_id: int) -> ParticipationRequest:
        """Withdraw a request that has not been confirmed."""
        self._refs.get_user(requester_id)
        request = self._requests.get(request_id)
        if request is None:
            raise NotFoundError(f"Request with id={request_id} was not found")
        if request.requester_id != requester_id:
            raise ForbiddenError(f"Request {request_id} does not belong to user {requester_id}")
        if request.status == RequestStatus.CONFIRMED:
            raise ConflictError("A confirmed request cannot be canceled")

        # Conditional on the status so a confirmation that lands first wins
        changed = self._requests.transition([request_id], _CANCELABLE, RequestStatus.CANCELED)
        if changed != 1:
            self._requests.session.rollback()
            raise ConflictError("A confirmed request cannot be canceled")
        self._requests.session.commit()
        self._requests.session.refresh(request)
        logger.info("Request %d canceled by user %d", request_id, requester_id)
        return request

    def list_for_user(self, user_id: int) -> list[ParticipationRequest]:
        self._refs.get_user(user_id)
        return self._requests.list_by_requester(user_id)

    def list_for_event(self, organizer_id: int, event_id: int) -> list[ParticipationRequest]:
        self._refs.get_user(organizer_id)
        event = self._events.get(event_id)
        if event is None:
            raise NotFoundError(f"Event with id={event_id} was not found")
        if event.initiator_id != organizer_id:
            raise ForbiddenError(f"User {organizer_id} is not the initiator of event {event_id}")
        return self._requests.list_by_event(event_id)
