"""User model."""

from datetime import datetime
from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class User(UUIDMixin, SQLModel, table=True):
    __tablename__ = "users"

    name: str = Field(nullable=False, index=True)
    email: Optional[str] = Field(default=None, unique=True, index=True)
    avatar: Optional[str] = None  # emoji
    role: str = Field(nullable=False, default="USER")  # USER | ADMIN
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
        sa_type=sa.DateTime(timezone=True),
    )
