"""Task schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, TaskStatus, UserRef


def check_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < 2:
        raise PydanticCustomError("title_too_short", "Le titre doit contenir au moins 2 caractères")
    if len(value) > 100:
        raise PydanticCustomError("title_too_long", "Le titre ne peut pas dépasser 100 caractères")
    return value


class TaskCreateRequest(CamelModel):
    title: str
    description: Optional[str] = Field(default=None, max_length=500)
    is_private: bool = False
    event_id: UUID
    assignee_id: Optional[UUID] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)


class TaskUpdateRequest(CamelModel):
    """Partial update. `assigneeId` and `dueDate` accept null to clear them."""
    title: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[TaskStatus] = None
    assignee_id: Optional[UUID] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: Optional[str]) -> Optional[str]:
        return check_title(value)


class TaskResponse(CamelModel):
    id: UUID
    event_id: UUID
    title: str
    description: Optional[str] = None
    is_private: bool
    status: TaskStatus
    due_date: Optional[datetime] = None
    assignee_id: Optional[UUID] = None
    assignee: Optional[UserRef] = None
    created_by_id: Optional[UUID] = None
    created_by: Optional[UserRef] = None
    created_at: Optional[datetime] = None


class TaskEnvelope(CamelModel):
    task: TaskResponse


class TaskListResponse(CamelModel):
    tasks: List[TaskResponse]
    count: int
