"""Event persistence (repository over a SQLAlchemy session)."""
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from event_explorer.models.event import Event, EventState


class EventStore:
    """Queries and writes for events. All methods share the caller's unit of work."""

    def __init__(self, db: Session) -> None:
        self.session = db

    def add(self, event: Event) -> Event:
        self.session.add(event)
        self.session.flush()
        return event

    def get(self, event_id: int) -> Optional[Event]:
        return self.session.get(Event, event_id)

    def get_for_update(self, event_id: int) -> Optional[Event]:
        """Load the event row locked for the rest of the transaction.

        ``FOR UPDATE`` serializes capacity checks per event on PostgreSQL; SQLite
        ignores it and relies on its single-writer lock plus the counter CAS.
        """
        return (
            self.session.query(Event)
            .filter(Event.id == event_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def advance_confirmed(self, event_id: int, observed: int, count: int) -> bool:
        """Compare-and-swap on the confirmed counter: observed -> observed + count."""
        updated = (
            self.session.query(Event)
            .filter(Event.id == event_id, Event.confirmed_requests == observed)
            .update({Event.confirmed_requests: observed + count}, synchronize_session=False)
        )
        return updated == 1

    def list_by_initiator(self, initiator_id: int, offset: int, limit: int) -> list[Event]:
        return (
            self.session.query(Event)
            .filter(Event.initiator_id == initiator_id)
            .order_by(Event.event_date.desc(), Event.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def search_admin(
        self,
        users: Optional[Sequence[int]],
        states: Optional[Sequence[EventState]],
        categories: Optional[Sequence[int]],
        range_start: datetime,
        range_end: datetime,
        offset: int,
        limit: int,
    ) -> list[Event]:
        query = self.session.query(Event).filter(
            Event.event_date >= range_start,
            Event.event_date <= range_end,
        )
        if users:
            query = query.filter(Event.initiator_id.in_(users))
        if states:
            query = query.filter(Event.state.in_(states))
        if categories:
            query = query.filter(Event.category_id.in_(categories))
        return (
            query.order_by(Event.event_date.desc(), Event.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def search_published(
        self,
        text: Optional[str],
        categories: Optional[Sequence[int]],
        paid: Optional[bool],
        range_start: datetime,
        range_end: datetime,
        only_available: bool,
    ) -> Query:
        """Filtered query over published events; ordering and paging are the caller's."""
        query = self.session.query(Event).filter(
            Event.state == EventState.PUBLISHED,
            Event.event_date >= range_start,
            Event.event_date <= range_end,
        )
        if text:
            pattern = f"%{text.lower()}%"
            query = query.filter(
                or_(Event.annotation.ilike(pattern), Event.description.ilike(pattern))
            )
        if categories:
            query = query.filter(Event.category_id.in_(categories))
        if paid is not None:
            query = query.filter(Event.paid == paid)
        if only_available:
            query = query.filter(
                or_(
                    Event.participant_limit == 0,
                    Event.confirmed_requests < Event.participant_limit,
                )
            )
        return query
