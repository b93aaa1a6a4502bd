from __future__ import annotations

from typing import List, Literal, Optional
from uuid import UUID

from .common import CamelModel


class ReminderResult(CamelModel):
    type: Literal["task", "event"]
    task_id: Optional[UUID] = None
    event_id: Optional[UUID] = None
    recipient: str


class ReminderRunResponse(CamelModel):
    success: bool = True
    sent: int
    results: List[ReminderResult]
