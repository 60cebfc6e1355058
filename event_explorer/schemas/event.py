"""Pydantic schemas for Events."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from event_explorer.models.event import Event, EventState
from event_explorer.schemas.category import CategoryOut
from event_explorer.schemas.user import UserShortOut
from event_explorer.timeutils import as_utc


class OwnerStateAction(str, enum.Enum):
    SEND_TO_REVIEW = "SEND_TO_REVIEW"
    CANCEL_REVIEW = "CANCEL_REVIEW"


class AdminStateAction(str, enum.Enum):
    PUBLISH_EVENT = "PUBLISH_EVENT"
    REJECT_EVENT = "REJECT_EVENT"


class EventSort(str, enum.Enum):
    EVENT_DATE = "EVENT_DATE"
    VIEWS = "VIEWS"


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    annotation: str = Field(min_length=20, max_length=2000)
    description: str = Field(min_length=20, max_length=7000)
    category: int
    location: Location
    event_date: datetime
    paid: bool = False
    participant_limit: int = Field(default=0, ge=0)
    request_moderation: bool = True


class EventPatch(BaseModel):
    """Fields shared by owner and admin edits; ``None`` means "leave unchanged"."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=120)
    annotation: Optional[str] = Field(default=None, min_length=20, max_length=2000)
    description: Optional[str] = Field(default=None, min_length=20, max_length=7000)
    category: Optional[int] = None
    location: Optional[Location] = None
    event_date: Optional[datetime] = None
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(default=None, ge=0)
    request_moderation: Optional[bool] = None


class EventOwnerPatch(EventPatch):
    state_action: Optional[OwnerStateAction] = None


class EventAdminPatch(EventPatch):
    state_action: Optional[AdminStateAction] = None


class EventShortOut(BaseModel):
    id: int
    title: str
    annotation: str
    category: CategoryOut
    initiator: UserShortOut
    event_date: datetime
    paid: bool
    confirmed_requests: int
    views: int

    @classmethod
    def from_event(cls, event: Event, views: int) -> EventShortOut:
        return cls(
            id=event.id,
            title=event.title,
            annotation=event.annotation,
            category=CategoryOut.model_validate(event.category),
            initiator=UserShortOut.model_validate(event.initiator),
            event_date=as_utc(event.event_date),
            paid=event.paid,
            confirmed_requests=event.confirmed_requests,
            views=views,
        )


class EventFullOut(EventShortOut):
    description: str
    location: Location
    participant_limit: int
    request_moderation: bool
    state: EventState
    created_on: datetime
    published_on: Optional[datetime] = None

    @classmethod
    def from_event(cls, event: Event, views: int) -> EventFullOut:
        return cls(
            id=event.id,
            title=event.title,
            annotation=event.annotation,
            description=event.description,
            category=CategoryOut.model_validate(event.category),
            initiator=UserShortOut.model_validate(event.initiator),
            location=Location(lat=event.location_lat, lon=event.location_lon),
            event_date=as_utc(event.event_date),
            paid=event.paid,
            participant_limit=event.participant_limit,
            request_moderation=event.request_moderation,
            state=event.state,
            created_on=as_utc(event.created_on),
            published_on=as_utc(event.published_on),
            confirmed_requests=event.confirmed_requests,
            views=views,
        )
