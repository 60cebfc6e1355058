"""Event ORM model and its lifecycle states."""
import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from event_explorer.database import Base


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("participant_limit >= 0", name="ck_events_participant_limit"),
        CheckConstraint("confirmed_requests >= 0", name="ck_events_confirmed_requests"),
        Index("ix_events_initiator_id", "initiator_id"),
        Index("ix_events_state_event_date", "state", "event_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(120), nullable=False)
    annotation = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    initiator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    location_lat = Column(Float, nullable=False)
    location_lon = Column(Float, nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    participant_limit = Column(Integer, nullable=False, default=0)
    request_moderation = Column(Boolean, nullable=False, default=True)
    state = Column(SAEnum(EventState), nullable=False, default=EventState.PENDING)
    created_on = Column(DateTime(timezone=True), nullable=False)
    published_on = Column(DateTime(timezone=True), nullable=True)
    # Materialized count of CONFIRMED requests; written only via services.capacity
    confirmed_requests = Column(Integer, nullable=False, default=0)

    category = relationship("Category")
    initiator = relationship("User")

    @property
    def is_unlimited(self) -> bool:
        return self.participant_limit == 0

    @property
    def has_free_slot(self) -> bool:
        return self.is_unlimited or self.confirmed_requests < self.participant_limit
