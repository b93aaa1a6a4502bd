"""Persisted refresh tokens (rotation + revocation)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class RefreshToken(UUIDMixin, SQLModel, table=True):
    __tablename__ = "refresh_tokens"

    token: str = Field(nullable=False, unique=True, index=True, sa_type=sa.Text)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True, ondelete="CASCADE")
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    revoked_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
    )
