"""
Task endpoints.

POST   /api/tasks        — Create a task in an event
PATCH  /api/tasks/{id}   — Edit a task (admin, creator or assignee)
DELETE /api/tasks/{id}   — Delete a task (admin or creator)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_user
from app.core.database import get_session
from app.core.errors import MSG_SERVER_ERROR
from app.models.base import as_uuid
from app.services import tasks as task_service
from noel_famille_shared.schemas.common import SuccessResponse
from noel_famille_shared.schemas.tasks import (
    TaskCreateRequest,
    TaskEnvelope,
    TaskResponse,
    TaskUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()


def _task_id_or_404(task_id: str):
    parsed = as_uuid(task_id)
    if parsed is None:
        raise HTTPException(status_code=404, detail=task_service.MSG_NOT_FOUND)
    return parsed


@router.post("", response_model=TaskEnvelope, status_code=201)
async def create_task(
    body: TaskCreateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        item = await task_service.create_task(body, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("task.create_error", user_id=str(identity.user_id), event_id=str(body.event_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return TaskEnvelope(task=TaskResponse(**item))


@router.patch("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    tid = _task_id_or_404(task_id)
    try:
        item = await task_service.update_task(tid, body, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("task.update_error", task_id=task_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return TaskEnvelope(task=TaskResponse(**item))


@router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: str,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    tid = _task_id_or_404(task_id)
    try:
        await task_service.delete_task(tid, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("task.delete_error", task_id=task_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return SuccessResponse()
