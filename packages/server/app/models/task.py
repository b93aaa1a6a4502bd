"""Task model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    event_id: uuid.UUID = Field(foreign_key="events.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    is_private: bool = Field(default=False, nullable=False)
    status: str = Field(nullable=False, default="TODO")  # TODO | IN_PROGRESS | DONE
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    created_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    due_date: Optional[datetime] = Field(default=None, index=True, sa_type=sa.DateTime(timezone=True))
