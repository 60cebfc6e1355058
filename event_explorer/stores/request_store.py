"""Participation request persistence."""
from typing import Collection, Iterable, Optional

from sqlalchemy.orm import Session

from event_explorer.models.request import ParticipationRequest, RequestStatus


class RequestStore:
    """Queries and conditional status writes for participation requests."""

    def __init__(self, db: Session) -> None:
        self.session = db

    def add(self, request: ParticipationRequest) -> ParticipationRequest:
        self.session.add(request)
        self.session.flush()
        return request

    def get(self, request_id: int) -> Optional[ParticipationRequest]:
        return self.session.get(ParticipationRequest, request_id)

    def get_many(self, request_ids: Iterable[int]) -> dict[int, ParticipationRequest]:
        ids = list(request_ids)
        if not ids:
            return {}
        rows = (
            self.session.query(ParticipationRequest)
            .filter(ParticipationRequest.id.in_(ids))
            .populate_existing()
            .all()
        )
        return {row.id: row for row in rows}

    def find_active(self, event_id: int, requester_id: int) -> Optional[ParticipationRequest]:
        return (
            self.session.query(ParticipationRequest)
            .filter(
                ParticipationRequest.event_id == event_id,
                ParticipationRequest.requester_id == requester_id,
                ParticipationRequest.status != RequestStatus.CANCELED,
            )
            .first()
        )

    def list_by_requester(self, requester_id: int) -> list[ParticipationRequest]:
        return (
            self.session.query(ParticipationRequest)
            .filter(ParticipationRequest.requester_id == requester_id)
            .order_by(ParticipationRequest.id)
            .all()
        )

    def list_by_event(self, event_id: int) -> list[ParticipationRequest]:
        return (
            self.session.query(ParticipationRequest)
            .filter(ParticipationRequest.event_id == event_id)
            .order_by(ParticipationRequest.id)
            .all()
        )

    def list_pending(self, event_id: int) -> list[ParticipationRequest]:
        return (
            self.session.query(ParticipationRequest)
            .filter(
                ParticipationRequest.event_id == event_id,
                ParticipationRequest.status == RequestStatus.PENDING,
            )
            .order_by(ParticipationRequest.id)
            .populate_existing()
            .all()
        )

    def transition(
        self,
        request_ids: Collection[int],
        from_statuses: Collection[RequestStatus],
        to_status: RequestStatus,
    ) -> int:
        """Set ``to_status`` on the rows still in one of ``from_statuses``.

        Returns the number of rows changed; callers compare it with
        ``len(request_ids)`` to detect a concurrent writer.
        Loaded instances are not synchronized; the commit that follows expires them.
        """
        if not request_ids:
            return 0
        return (
            self.session.query(ParticipationRequest)
            .filter(
                ParticipationRequest.id.in_(list(request_ids)),
                ParticipationRequest.status.in_(list(from_statuses)),
            )
            .update({ParticipationRequest.status: to_status}, synchronize_session=False)
        )
