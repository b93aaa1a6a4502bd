"""
Contribution service: what each participant brings to an event.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Identity
from app.models.base import ensure_utc
from app.models.contribution import Contribution
from app.services.access import (
    MSG_FORBIDDEN,
    ensure_event_access,
    get_event_or_404,
    user_refs,
)
from noel_famille_shared.schemas.contributions import (
    ContributionCreateRequest,
    ContributionUpdateRequest,
)

log = structlog.get_logger()

MSG_NOT_FOUND = "Contribution non trouvée"


def contribution_info(c: Contribution, users: Optional[dict] = None) -> dict:
    users = users or {}
    return {
        "id": c.id,
        "event_id": c.event_id,
        "title": c.title,
        "description": c.description,
        "category": c.category,
        "quantity": c.quantity,
        "status": c.status,
        "assignee_id": c.assignee_id,
        "assignee": users.get(c.assignee_id),
        "from_poll_id": c.from_poll_id,
        "created_at": ensure_utc(c.created_at),
    }


async def list_event_contributions(event_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    """Newest first, with the assignee expanded."""
    result = await session.execute(
        select(Contribution)
        .where(Contribution.event_id == event_id)
        .order_by(Contribution.created_at.desc())
    )
    contributions = result.scalars().all()
    users = await user_refs((c.assignee_id for c in contributions), session)
    return [contribution_info(c, users) for c in contributions]


async def create_contribution(
    req: ContributionCreateRequest, identity: Identity, session: AsyncSession
) -> dict:
    """Add a contribution. Without an explicit assignee it goes to the caller."""
    await ensure_event_access(identity, req.event_id, session)
    await get_event_or_404(req.event_id, session)

    contribution = Contribution(
        event_id=req.event_id,
        title=req.title,
        description=req.description,
        category=req.category,
        quantity=req.quantity,
        assignee_id=req.assignee_id or identity.user_id,
    )
    session.add(contribution)
    await session.flush()

    log.info("contribution.created", contribution_id=str(contribution.id), event_id=str(req.event_id))
    users = await user_refs([contribution.assignee_id], session)
    return contribution_info(contribution, users)


async def _get_or_404(contribution_id: uuid.UUID, session: AsyncSession) -> Contribution:
    contribution = await session.get(Contribution, contribution_id)
    if contribution is None:
        raise HTTPException(status_code=404, detail=MSG_NOT_FOUND)
    return contribution


async def update_contribution(
    contribution_id: uuid.UUID,
    req: ContributionUpdateRequest,
    identity: Identity,
    session: AsyncSession,
) -> dict:
    contribution = await _get_or_404(contribution_id, session)
    await ensure_event_access(identity, contribution.event_id, session, detail=MSG_FORBIDDEN)

    for field, value in req.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "quantity", "status"):
            continue
        if field == "status":
            value = value.value
        setattr(contribution, field, value)
    session.add(contribution)
    await session.flush()

    users = await user_refs([contribution.assignee_id], session)
    return contribution_info(contribution, users)


async def delete_contribution(
    contribution_id: uuid.UUID, identity: Identity, session: AsyncSession
) -> None:
    """Only the assignee or an admin may remove a contribution."""
    contribution = await _get_or_404(contribution_id, session)
    if not identity.is_admin and contribution.assignee_id != identity.user_id:
        raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)

    await session.delete(contribution)
    await session.flush()
    log.info("contribution.deleted", contribution_id=str(contribution_id))
