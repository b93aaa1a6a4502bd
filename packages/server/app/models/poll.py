"""Poll, option and vote models."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, utcnow


class Poll(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "polls"

    event_id: uuid.UUID = Field(foreign_key="events.id", nullable=False, index=True, ondelete="CASCADE")
    created_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    type: str = Field(nullable=False, default="SINGLE")  # SINGLE | MULTIPLE
    is_closed: bool = Field(default=False, nullable=False, index=True)
    # Ignored once is_closed is set
    auto_close: Optional[datetime] = Field(default=None, index=True, sa_type=sa.DateTime(timezone=True))
    closed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))


class PollOption(UUIDMixin, SQLModel, table=True):
    __tablename__ = "poll_options"

    poll_id: uuid.UUID = Field(foreign_key="polls.id", nullable=False, index=True, ondelete="CASCADE")
    label: str = Field(nullable=False)
    position: int = Field(default=0, nullable=False, sa_column_kwargs={"server_default": sa.text("0")})


class PollVote(UUIDMixin, SQLModel, table=True):
    __tablename__ = "poll_votes"
    __table_args__ = (sa.UniqueConstraint("option_id", "user_id"),)

    poll_id: uuid.UUID = Field(foreign_key="polls.id", nullable=False, index=True, ondelete="CASCADE")
    option_id: uuid.UUID = Field(foreign_key="poll_options.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
