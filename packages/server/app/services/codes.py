"""
Join code service — list, create and delete event codes.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.event import Event
from app.models.event_code import EventCode, EventCodeEvent
from noel_famille_shared.schemas.codes import CodeCreateRequest

log = structlog.get_logger()


def _code_info(code: EventCode, events: list[dict]) -> dict:
    return {
        "id": code.id,
        "code": code.code,
        "is_active": code.is_active,
        "is_master": code.is_master,
        "expires_at": code.expires_at,
        "created_at": code.created_at,
        "events": events,
    }


async def _linked_events(
    code_ids: list[uuid.UUID], session: AsyncSession
) -> dict[uuid.UUID, list[dict]]:
    if not code_ids:
        return {}
    result = await session.execute(
        select(EventCodeEvent.code_id, Event.id, Event.name)
        .join(Event, Event.id == EventCodeEvent.event_id)
        .where(EventCodeEvent.code_id.in_(code_ids))
        .order_by(Event.date.asc())
    )
    linked: dict[uuid.UUID, list[dict]] = {cid: [] for cid in code_ids}
    for code_id, event_id, event_name in result.all():
        linked[code_id].append({"id": event_id, "name": event_name})
    return linked


async def list_codes(session: AsyncSession) -> list[dict]:
    """All codes, newest first, with the events each one opens."""
    result = await session.execute(
        select(EventCode).order_by(EventCode.created_at.desc())
    )
    codes = result.scalars().all()
    linked = await _linked_events([c.id for c in codes], session)
    return [_code_info(c, linked[c.id]) for c in codes]


async def get_code_by_value(code: str, session: AsyncSession) -> EventCode | None:
    result = await session.execute(
        select(EventCode).where(EventCode.code == code.upper())
    )
    return result.scalar_one_or_none()


async def create_code(req: CodeCreateRequest, session: AsyncSession) -> dict:
    """Create a code linked to existing events."""
    if await get_code_by_value(req.code, session):
        raise HTTPException(status_code=400, detail="Ce code existe déjà")

    result = await session.execute(select(Event.id).where(Event.id.in_(req.event_ids)))
    found = set(result.scalars().all())
    if found != set(req.event_ids):
        raise HTTPException(status_code=400, detail="Événement introuvable")

    code = EventCode(
        code=req.code,
        is_master=req.is_master,
        expires_at=req.expires_at,
    )
    session.add(code)
    await session.flush()

    for event_id in req.event_ids:
        session.add(EventCodeEvent(code_id=code.id, event_id=event_id))
    await session.flush()

    log.info("code.created", code_id=str(code.id), events=len(req.event_ids), master=req.is_master)
    linked = await _linked_events([code.id], session)
    return _code_info(code, linked[code.id])


async def delete_code(code_id: uuid.UUID, session: AsyncSession) -> None:
    """Delete a code by id. A missing id raises NoResultFound."""
    result = await session.execute(select(EventCode).where(EventCode.id == code_id))
    code = result.scalar_one()
    await session.delete(code)
    await session.flush()
    log.info("code.deleted", code_id=str(code_id))
