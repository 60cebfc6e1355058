"""Capacity discipline shared by request admission and batch confirmation.

Both writers of confirmed-count-affecting state follow the same steps inside one
unit of work:

1. read the event with ``SELECT ... FOR UPDATE``;
2. move ``events.confirmed_requests`` with a compare-and-swap against the value
   read in step 1 (a zero increment still performs the swap, so a pending
   admission serializes with a concurrent confirmation);
3. change request statuses only where they are still in the expected state.

A lost swap, or a request row that changed underneath, raises
``CapacityContention``. That and a database lock timeout (``OperationalError``)
roll the unit of work back and replay it from a fresh read; once attempts are
exhausted the caller sees ``ConflictError``.

The swap must be the first write of the unit of work. SQLite takes its write
lock at the first DML statement, so everything after the swap runs without
interference from other writers.
"""
import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from event_explorer.errors import ConflictError
from event_explorer.models.event import Event
from event_explorer.stores.event_store import EventStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CapacityContention(Exception):
    """Another transaction changed the event's capacity state first."""


def free_slots(event: Event) -> Optional[int]:
    """Remaining confirmable slots, or ``None`` when the event is unlimited."""
    if event.is_unlimited:
        return None
    return max(event.participant_limit - event.confirmed_requests, 0)


def claim_slots(events: EventStore, event: Event, count: int) -> None:
    """Advance the event's confirmed counter by ``count`` or raise ``CapacityContention``."""
    observed = event.confirmed_requests
    if not events.advance_confirmed(event.id, observed, count):
        raise CapacityContention(
            f"Confirmed count of event {event.id} moved away from {observed}"
        )
    events.session.expire(event, ["confirmed_requests"])


def run_in_transaction(db: Session, operation: Callable[[], T], attempts: int) -> T:
    """Run ``operation`` and commit, replaying it on capacity contention.

    ``operation`` must re-read everything it depends on; it is called again
    from scratch after a rollback.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_random(min=0.01, max=0.05),
        retry=retry_if_exception_type((CapacityContention, OperationalError)),
        before_sleep=before_sleep_log(logger, logging.INFO),
        reraise=True,
    )
    try:
        for attempt in retrying:
            with attempt:
                try:
                    result = operation()
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
    except (CapacityContention, OperationalError) as e:
        logger.warning("Giving up after %d attempts: %s", attempts, e)
        raise ConflictError(
            "The event's participant list was changed concurrently. Please retry."
        ) from e
    return result
