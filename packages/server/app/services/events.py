"""
Event service: admin listing with aggregate counts, participant list and detail views.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Identity
from app.models.base import ensure_utc
from app.models.contribution import Contribution
from app.models.event import Event, EventUser
from app.models.task import Task
from app.models.user import User
from app.services import contributions as contribution_service
from app.services import polls as poll_service
from app.services import tasks as task_service
from app.services.access import ensure_event_access, get_event_or_404

DETAIL_SECTIONS = frozenset({"contributions", "polls", "tasks"})


def _count_of(model, fk) -> object:
    return (
        select(func.count())
        .select_from(model)
        .where(fk == Event.id)
        .correlate(Event)
        .scalar_subquery()
    )


async def list_events_with_counts(session: AsyncSession) -> list[dict]:
    """All events ordered by date, each with participant/contribution/task counts."""
    participants = _count_of(EventUser, EventUser.event_id).label("event_users")
    contributions = _count_of(Contribution, Contribution.event_id).label("contributions")
    tasks = _count_of(Task, Task.event_id).label("tasks")

    result = await session.execute(
        select(Event, participants, contributions, tasks).order_by(Event.date.asc())
    )
    return [
        {
            "id": event.id,
            "name": event.name,
            "description": event.description,
            "date": event.date,
            "end_date": event.end_date,
            "location": event.location,
            "map_url": event.map_url,
            "status": event.status,
            "count": {
                "event_users": n_users,
                "contributions": n_contributions,
                "tasks": n_tasks,
            },
        }
        for event, n_users, n_contributions, n_tasks in result.all()
    ]


def _event_fields(event: Event) -> dict:
    return {
        "id": event.id,
        "name": event.name,
        "description": event.description,
        "date": ensure_utc(event.date),
        "end_date": ensure_utc(event.end_date),
        "location": event.location,
        "map_url": event.map_url,
        "status": event.status,
    }


async def list_user_events(user_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    """Events the user has joined, soonest first."""
    participants = _count_of(EventUser, EventUser.event_id).label("event_users")
    contributions = _count_of(Contribution, Contribution.event_id).label("contributions")
    tasks = _count_of(Task, Task.event_id).label("tasks")

    result = await session.execute(
        select(Event, participants, contributions, tasks)
        .join(EventUser, EventUser.event_id == Event.id)
        .where(EventUser.user_id == user_id)
        .order_by(Event.date.asc())
    )
    return [
        {
            **_event_fields(event),
            "participant_count": n_users,
            "contribution_count": n_contributions,
            "task_count": n_tasks,
        }
        for event, n_users, n_contributions, n_tasks in result.all()
    ]


async def list_participants(event_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    result = await session.execute(
        select(User.id, User.name, User.avatar)
        .join(EventUser, EventUser.user_id == User.id)
        .where(EventUser.event_id == event_id)
        .order_by(EventUser.joined_at.asc())
    )
    return [{"id": uid, "name": name, "avatar": avatar} for uid, name, avatar in result.all()]


async def get_event_detail(
    identity: Identity,
    event_id: uuid.UUID,
    include: Iterable[str],
    session: AsyncSession,
) -> dict:
    """
    One event for a participant.

    Access is checked before existence, so a non-admin asking for an unknown
    event gets 403. `include` names extra sections (contributions, polls,
    tasks); unknown names are ignored.
    """
    await ensure_event_access(identity, event_id, session)
    event = await get_event_or_404(event_id, session)
    sections = DETAIL_SECTIONS.intersection(include)

    detail = _event_fields(event)
    detail["participants"] = await list_participants(event.id, session)
    if "contributions" in sections:
        detail["contributions"] = await contribution_service.list_event_contributions(event.id, session)
    if "polls" in sections:
        detail["polls"] = await poll_service.list_event_polls(event.id, identity.user_id, session)
    if "tasks" in sections:
        detail["tasks"] = await task_service.list_visible_tasks(identity, event.id, session)
    return detail
