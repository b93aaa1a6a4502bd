"""
Event membership checks and small lookups shared by the event-scoped services.

A caller may act on an event when linked to it through event_users, or when
they hold the ADMIN role.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Identity
from app.models.event import Event, EventUser
from app.models.user import User

MSG_EVENT_FORBIDDEN = "Accès non autorisé à cet événement"
MSG_FORBIDDEN = "Accès non autorisé"
MSG_EVENT_NOT_FOUND = "Événement non trouvé"


async def is_participant(user_id: uuid.UUID, event_id: uuid.UUID, session: AsyncSession) -> bool:
    result = await session.execute(
        select(EventUser.user_id).where(
            EventUser.user_id == user_id,
            EventUser.event_id == event_id,
        )
    )
    return result.first() is not None


async def ensure_event_access(
    identity: Identity,
    event_id: uuid.UUID,
    session: AsyncSession,
    detail: str = MSG_EVENT_FORBIDDEN,
) -> None:
    """Raise 403 unless the caller is an admin or a participant of the event."""
    if identity.is_admin:
        return
    if not await is_participant(identity.user_id, event_id, session):
        raise HTTPException(status_code=403, detail=detail)


async def get_event_or_404(event_id: uuid.UUID, session: AsyncSession) -> Event:
    event = await session.get(Event, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=MSG_EVENT_NOT_FOUND)
    return event


async def user_refs(user_ids: Iterable, session: AsyncSession) -> dict[uuid.UUID, dict]:
    """Map user id -> {id, name, avatar} for the given ids; None entries are skipped."""
    wanted = {uid for uid in user_ids if uid is not None}
    if not wanted:
        return {}
    result = await session.execute(
        select(User.id, User.name, User.avatar).where(User.id.in_(wanted))
    )
    return {
        user_id: {"id": user_id, "name": name, "avatar": avatar}
        for user_id, name, avatar in result.all()
    }
