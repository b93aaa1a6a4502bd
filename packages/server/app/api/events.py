"""
Participant event endpoints.

GET /api/events              — Events the caller has joined, with counts
GET /api/events/{id}         — One event; ?include=contributions,polls,tasks
GET /api/events/{id}/tasks   — Tasks of an event
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_user
from app.core.database import get_session
from app.core.errors import MSG_SERVER_ERROR
from app.models.base import as_uuid
from app.services import events as event_service
from app.services import tasks as task_service
from app.services.access import MSG_EVENT_NOT_FOUND
from noel_famille_shared.schemas.events import (
    EventDetail,
    EventDetailResponse,
    EventListResponse,
    EventSummary,
)
from noel_famille_shared.schemas.tasks import TaskListResponse, TaskResponse

log = structlog.get_logger()
router = APIRouter()


def _event_id_or_404(event_id: str):
    parsed = as_uuid(event_id)
    if parsed is None:
        raise HTTPException(status_code=404, detail=MSG_EVENT_NOT_FOUND)
    return parsed


@router.get("", response_model=EventListResponse)
async def list_my_events(
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        items = await event_service.list_user_events(identity.user_id, session)
    except Exception:
        log.exception("events.list_error", user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return EventListResponse(events=[EventSummary(**item) for item in items])


@router.get("/{event_id}", response_model=EventDetailResponse, response_model_exclude_unset=True)
async def get_event(
    event_id: str,
    include: Optional[str] = None,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Event detail with participants; extra sections on request."""
    eid = _event_id_or_404(event_id)
    sections = [part.strip() for part in (include or "").split(",") if part.strip()]
    try:
        detail = await event_service.get_event_detail(identity, eid, sections, session)
    except HTTPException:
        raise
    except Exception:
        log.exception("events.detail_error", event_id=event_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return EventDetailResponse(event=EventDetail(**detail))


@router.get("/{event_id}/tasks", response_model=TaskListResponse)
async def list_event_tasks(
    event_id: str,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    eid = _event_id_or_404(event_id)
    try:
        items = await task_service.list_event_tasks(identity, eid, session)
    except HTTPException:
        raise
    except Exception:
        log.exception("events.tasks_error", event_id=event_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return TaskListResponse(tasks=[TaskResponse(**item) for item in items], count=len(items))
