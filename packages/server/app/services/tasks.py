"""
Task service: event to-do items.

Private tasks are only listed for their creator, their assignee and admins.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Identity
from app.models.base import ensure_utc
from app.models.task import Task
from app.services.access import (
    MSG_FORBIDDEN,
    ensure_event_access,
    get_event_or_404,
    user_refs,
)
from noel_famille_shared.schemas.tasks import TaskCreateRequest, TaskUpdateRequest

log = structlog.get_logger()

MSG_NOT_FOUND = "Tâche non trouvée"


def task_info(task: Task, users: Optional[dict] = None) -> dict:
    users = users or {}
    return {
        "id": task.id,
        "event_id": task.event_id,
        "title": task.title,
        "description": task.description,
        "is_private": task.is_private,
        "status": task.status,
        "due_date": ensure_utc(task.due_date),
        "assignee_id": task.assignee_id,
        "assignee": users.get(task.assignee_id),
        "created_by_id": task.created_by_id,
        "created_by": users.get(task.created_by_id),
        "created_at": ensure_utc(task.created_at),
    }


async def _with_users(tasks: list[Task], session: AsyncSession) -> list[dict]:
    ids = [t.assignee_id for t in tasks] + [t.created_by_id for t in tasks]
    users = await user_refs(ids, session)
    return [task_info(t, users) for t in tasks]


async def list_visible_tasks(
    identity: Identity, event_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """Tasks of an event, newest first, without other people's private tasks."""
    query = select(Task).where(Task.event_id == event_id)
    if not identity.is_admin:
        query = query.where(
            or_(
                Task.is_private == False,  # noqa: E712
                Task.created_by_id == identity.user_id,
                Task.assignee_id == identity.user_id,
            )
        )
    result = await session.execute(query.order_by(Task.created_at.desc()))
    return await _with_users(list(result.scalars().all()), session)


async def list_event_tasks(
    identity: Identity, event_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    await ensure_event_access(identity, event_id, session)
    return await list_visible_tasks(identity, event_id, session)


async def create_task(req: TaskCreateRequest, identity: Identity, session: AsyncSession) -> dict:
    await ensure_event_access(identity, req.event_id, session, detail=MSG_FORBIDDEN)
    await get_event_or_404(req.event_id, session)

    task = Task(
        event_id=req.event_id,
        title=req.title,
        description=req.description,
        is_private=req.is_private,
        assignee_id=req.assignee_id,
        due_date=req.due_date,
        created_by_id=identity.user_id,
    )
    session.add(task)
    await session.flush()

    log.info("task.created", task_id=str(task.id), event_id=str(req.event_id))
    return (await _with_users([task], session))[0]


async def _get_or_404(task_id: uuid.UUID, session: AsyncSession) -> Task:
    task = await session.get(Task, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=MSG_NOT_FOUND)
    return task


async def update_task(
    task_id: uuid.UUID, req: TaskUpdateRequest, identity: Identity, session: AsyncSession
) -> dict:
    """Admins, the creator and the assignee may edit a task."""
    task = await _get_or_404(task_id, session)
    allowed = (
        identity.is_admin
        or task.created_by_id == identity.user_id
        or task.assignee_id == identity.user_id
    )
    if not allowed:
        raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)

    for field, value in req.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "status"):
            continue
        if field == "status":
            value = value.value
        setattr(task, field, value)
    session.add(task)
    await session.flush()

    return (await _with_users([task], session))[0]


async def delete_task(task_id: uuid.UUID, identity: Identity, session: AsyncSession) -> None:
    """Only admins and the creator may delete a task."""
    task = await _get_or_404(task_id, session)
    if not identity.is_admin and task.created_by_id != identity.user_id:
        raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)

    await session.delete(task)
    await session.flush()
    log.info("task.deleted", task_id=str(task_id))
