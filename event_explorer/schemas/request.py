"""Pydantic schemas for participation requests."""
import enum
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from event_explorer.models.request import RequestStatus
from event_explorer.timeutils import as_utc


class RequestOut(BaseModel):
    id: int
    event_id: int
    requester_id: int
    status: RequestStatus
    created: datetime

    model_config = {"from_attributes": True}

    @field_validator("created")
    @classmethod
    def _created_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class StatusTarget(str, enum.Enum):
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class StatusUpdateIn(BaseModel):
    request_ids: list[int] = Field(min_length=1)
    status: StatusTarget


class StatusUpdateOut(BaseModel):
    confirmed_requests: list[RequestOut] = []
    rejected_requests: list[RequestOut] = []
