"""
Contribution endpoints.

POST   /api/contributions        — Add a contribution to an event
PATCH  /api/contributions/{id}   — Edit a contribution (event participants)
DELETE /api/contributions/{id}   — Remove a contribution (assignee or admin)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_user
from app.core.database import get_session
from app.core.errors import MSG_SERVER_ERROR
from app.models.base import as_uuid
from app.services import contributions as contribution_service
from noel_famille_shared.schemas.common import SuccessResponse
from noel_famille_shared.schemas.contributions import (
    ContributionCreateRequest,
    ContributionEnvelope,
    ContributionResponse,
    ContributionUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()


def _contribution_id_or_404(contribution_id: str):
    parsed = as_uuid(contribution_id)
    if parsed is None:
        raise HTTPException(status_code=404, detail=contribution_service.MSG_NOT_FOUND)
    return parsed


@router.post("", response_model=ContributionEnvelope, status_code=201)
async def create_contribution(
    body: ContributionCreateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    """Add a contribution; it is assigned to the caller unless stated otherwise."""
    try:
        item = await contribution_service.create_contribution(body, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception(
            "contribution.create_error", user_id=str(identity.user_id), event_id=str(body.event_id)
        )
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return ContributionEnvelope(contribution=ContributionResponse(**item))


@router.patch("/{contribution_id}", response_model=ContributionEnvelope)
async def update_contribution(
    contribution_id: str,
    body: ContributionUpdateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    cid = _contribution_id_or_404(contribution_id)
    try:
        item = await contribution_service.update_contribution(cid, body, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception(
            "contribution.update_error", contribution_id=contribution_id, user_id=str(identity.user_id)
        )
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return ContributionEnvelope(contribution=ContributionResponse(**item))


@router.delete("/{contribution_id}", response_model=SuccessResponse)
async def delete_contribution(
    contribution_id: str,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    cid = _contribution_id_or_404(contribution_id)
    try:
        await contribution_service.delete_contribution(cid, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception(
            "contribution.delete_error", contribution_id=contribution_id, user_id=str(identity.user_id)
        )
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return SuccessResponse()
