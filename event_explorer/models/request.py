"""Participation request ORM model."""
import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, text
from sqlalchemy.orm import relationship

from event_explorer.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


_ACTIVE = text("status <> 'CANCELED'")


class ParticipationRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (
        # At most one non-canceled request per (event, requester)
        Index(
            "uq_requests_event_requester_active",
            "event_id",
            "requester_id",
            unique=True,
            postgresql_where=_ACTIVE,
            sqlite_where=_ACTIVE,
        ),
        Index("ix_requests_event_status", "event_id", "status"),
        Index("ix_requests_requester_id", "requester_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING)
    created = Column(DateTime(timezone=True), nullable=False)

    event = relationship("Event")
