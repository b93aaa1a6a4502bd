"""Event schemas: admin listing with aggregate counts, participant views."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .common import CamelModel, EventStatus, UserRef
from .contributions import ContributionResponse
from .polls import PollView
from .tasks import TaskResponse


class EventCounts(CamelModel):
    event_users: int = 0
    contributions: int = 0
    tasks: int = 0


class AdminEventItem(CamelModel):
    """One row of the admin event list; related collections are counted, not expanded."""
    id: UUID
    name: str
    description: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    map_url: Optional[str] = None
    status: EventStatus
    count: EventCounts = Field(alias="_count")


class AdminEventListResponse(CamelModel):
    events: List[AdminEventItem]


class EventSummary(CamelModel):
    id: UUID
    name: str
    description: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    map_url: Optional[str] = None
    status: EventStatus
    participant_count: int = 0
    contribution_count: int = 0
    task_count: int = 0


class EventListResponse(CamelModel):
    events: List[EventSummary]


class EventDetail(CamelModel):
    """
    One event for a participant. Collections other than participants are only
    present when requested through `include`.
    """
    id: UUID
    name: str
    description: Optional[str] = None
    date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    map_url: Optional[str] = None
    status: EventStatus
    participants: List[UserRef] = []
    contributions: Optional[List[ContributionResponse]] = None
    polls: Optional[List[PollView]] = None
    tasks: Optional[List[TaskResponse]] = None


class EventDetailResponse(CamelModel):
    event: EventDetail
