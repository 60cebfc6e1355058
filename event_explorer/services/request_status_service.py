"""Organizer-driven bulk confirmation and rejection of participation requests.

A batch is all-or-nothing: every named request must exist, belong to the event
and be PENDING, otherwise nothing changes. Confirmation is granted in the order
the ids were given, up to the free slots; batch members past the last free slot
are rejected. Once the event is full every other PENDING request for it is
rejected too, whether or not it was part of the batch.
"""
import logging
from dataclasses import dataclass, field
from typing import Sequence

from event_explorer.config import Settings, settings
from event_explorer.errors import ConflictError, ForbiddenError, NotFoundError
from event_explorer.models.request import ParticipationRequest, RequestStatus
from event_explorer.schemas.request import StatusTarget
from event_explorer.services import capacity
from event_explorer.stores.event_store import EventStore
from event_explorer.stores.reference_store import ReferenceStore
from event_explorer.stores.request_store import RequestStore

logger = logging.getLogger(__name__)


@dataclass
class StatusChange:
    confirmed: list[ParticipationRequest] = field(default_factory=list)
    rejected: list[ParticipationRequest] = field(default_factory=list)


class RequestStatusService:
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

    def _move(self, batch: Sequence[ParticipationRequest], target: RequestStatus) -> None:
        if not batch:
            return
        changed = self._requests.transition([r.id for r in batch], [RequestStatus.PENDING], target)
        if changed != len(batch):
            raise capacity.CapacityContention(
                f"{len(batch) - changed} of {len(batch)} requests left PENDING concurrently"
            )

    def change_status(
        self,
        organizer_id: int,
        event_id: int,
        request_ids: Sequence[int],
        target: StatusTarget,
    ) -> StatusChange:
        self._refs.get_user(organizer_id)
        ids = list(dict.fromkeys(request_ids))

        def apply() -> StatusChange:
            event = self._events.get_for_update(event_id)
            if event is None:
                raise NotFoundError(f"Event with id={event_id} was not found")
            if event.initiator_id != organizer_id:
                raise ForbiddenError(f"User {organizer_id} is not the initiator of event {event_id}")

            found = self._requests.get_many(ids)
            for request_id in ids:
                request = found.get(request_id)
                if request is None or request.event_id != event_id:
                    raise NotFoundError(f"Request with id={request_id} was not found")
            batch = [found[request_id] for request_id in ids]
            not_pending = [r.id for r in batch if r.status != RequestStatus.PENDING]
            if not_pending:
                raise ConflictError(f"Request must have status PENDING: {not_pending}")

            if target == StatusTarget.REJECTED:
                # Counter is untouched, but the swap still orders this write against confirmations
                capacity.claim_slots(self._events, event, 0)
                self._move(batch, RequestStatus.REJECTED)
                return StatusChange(rejected=batch)

            slots = capacity.free_slots(event)
            if slots == 0:
                raise ConflictError(f"The participant limit of event {event_id} has been reached")
            to_confirm = batch if slots is None else batch[:slots]
            overflow = [] if slots is None else batch[slots:]

            capacity.claim_slots(self._events, event, len(to_confirm))
            self._move(to_confirm, RequestStatus.CONFIRMED)
            self._move(overflow, RequestStatus.REJECTED)
            result = StatusChange(confirmed=list(to_confirm), rejected=list(overflow))

            if slots is not None and len(to_confirm) >= slots:
                remaining = self._requests.list_pending(event_id)
                self._move(remaining, RequestStatus.REJECTED)
                result.rejected.extend(remaining)
            return result

        result = capacity.run_in_transaction(
            self._requests.session, apply, self._config.CAPACITY_RETRY_ATTEMPTS
        )
        logger.info(
            "Event %d: organizer %d set %s on %d requests (confirmed=%d, rejected=%d)",
            event_id, organizer_id, target.value, len(ids), len(result.confirmed), len(result.rejected),
        )
        return result
