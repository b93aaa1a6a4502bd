"""Contribution schemas (what each participant brings)."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, ContributionStatus, UserRef

ContributionCategory = Literal["plat", "boisson", "décor", "autre"]


def check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < 2:
        raise PydanticCustomError("title_too_short", "Le titre doit contenir au moins 2 caractères")
    if len(value) > 100:
        raise PydanticCustomError("title_too_long", "Le titre ne peut pas dépasser 100 caractères")
    return value


class ContributionCreateRequest(CamelModel):
    title: str
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[ContributionCategory] = None
    quantity: int = Field(default=1, ge=1, le=100)
    event_id: UUID
    assignee_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)


class ContributionUpdateRequest(CamelModel):
    """Partial update; only the fields present in the payload are applied."""
    title: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    category: Optional[ContributionCategory] = None
    quantity: Optional[int] = Field(default=None, ge=1, le=100)
    status: Optional[ContributionStatus] = None
    assignee_id: Optional[UUID] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)


class ContributionResponse(CamelModel):
    id: UUID
    event_id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    status: ContributionStatus
    assignee_id: Optional[UUID] = None
    assignee: Optional[UserRef] = None
    from_poll_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class ContributionEnvelope(CamelModel):
    contribution: ContributionResponse
