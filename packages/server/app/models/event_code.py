"""Join codes and the events they grant access to."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class EventCode(UUIDMixin, SQLModel, table=True):
    __tablename__ = "event_codes"

    code: str = Field(nullable=False, unique=True, index=True)  # stored upper-case
    is_active: bool = Field(default=True, nullable=False)
    is_master: bool = Field(default=False, nullable=False)  # grants every non-closed event
    expires_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )


class EventCodeEvent(SQLModel, table=True):
    __tablename__ = "event_code_events"

    code_id: uuid.UUID = Field(foreign_key="event_codes.id", primary_key=True, ondelete="CASCADE")
    event_id: uuid.UUID = Field(foreign_key="events.id", primary_key=True, ondelete="CASCADE")
