"""Contribution model (dishes, drinks, decorations brought to an event)."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Contribution(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "contributions"

    event_id: uuid.UUID = Field(foreign_key="events.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    category: Optional[str] = None  # plat | boisson | décor | autre
    quantity: int = Field(default=1, nullable=False)
    status: str = Field(nullable=False, default="PLANNED")  # PLANNED | CONFIRMED | BROUGHT
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    from_poll_id: Optional[uuid.UUID] = Field(default=None, foreign_key="polls.id")
