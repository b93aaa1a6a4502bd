"""Event model and participant link table."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, utcnow


class Event(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "events"

    name: str = Field(nullable=False)
    description: Optional[str] = None
    date: datetime = Field(nullable=False, index=True, sa_type=sa.DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    location: Optional[str] = None
    map_url: Optional[str] = None
    status: str = Field(nullable=False, default="OPEN")  # DRAFT | OPEN | CLOSED


class EventUser(SQLModel, table=True):
    __tablename__ = "event_users"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True, ondelete="CASCADE")
    event_id: uuid.UUID = Field(foreign_key="events.id", primary_key=True, ondelete="CASCADE")
    joined_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
