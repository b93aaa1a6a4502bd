"""
Poll endpoints.

POST   /api/polls              — Create a poll in an event
POST   /api/polls/{id}/vote    — Vote (replaces the caller's previous votes)
DELETE /api/polls/{id}/vote    — Withdraw the caller's votes
DELETE /api/polls/{id}         — Delete a poll (creator or admin)
GET    /api/polls/auto-close   — Close polls whose auto_close time has passed (cron)
POST   /api/polls/{id}/close   — Close a poll by hand (admin)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_admin, require_cron_secret, require_user
from app.core.database import get_session
from app.core.errors import MSG_INTERNAL_ERROR, MSG_SERVER_ERROR
from app.models.base import as_uuid
from app.services import polls as poll_service
from noel_famille_shared.schemas.common import MessageResponse, SuccessResponse
from noel_famille_shared.schemas.polls import (
    AutoCloseResponse,
    ClosedPollRef,
    PollCloseResponse,
    PollCreateRequest,
    PollEnvelope,
    PollView,
    VoteRequest,
)

log = structlog.get_logger()
router = APIRouter()


def _poll_id_or_404(poll_id: str):
    parsed = as_uuid(poll_id)
    if parsed is None:
        raise HTTPException(status_code=404, detail="Sondage non trouvé")
    return parsed


@router.post("", response_model=PollEnvelope, status_code=201)
async def create_poll(
    body: PollCreateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        view = await poll_service.create_poll(body, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("poll.create_error", user_id=str(identity.user_id), event_id=str(body.event_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return PollEnvelope(poll=PollView(**view))


@router.get(
    "/auto-close",
    response_model=AutoCloseResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def auto_close_polls(session: AsyncSession = Depends(get_session)):
    """Sweep expired polls. Re-running right after reports zero closures."""
    try:
        closed = await poll_service.close_expired_polls(session)
        await session.commit()
    except Exception:
        log.exception("polls.auto_close_error")
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)
    return AutoCloseResponse(
        closed=len(closed),
        polls=[ClosedPollRef(**p) for p in closed],
    )


@router.post("/{poll_id}/vote", response_model=PollEnvelope)
async def vote(
    poll_id: str,
    body: VoteRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    pid = _poll_id_or_404(poll_id)
    try:
        view = await poll_service.vote(pid, body.option_ids, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("poll.vote_error", poll_id=poll_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return PollEnvelope(poll=PollView(**view))


@router.delete("/{poll_id}/vote", response_model=SuccessResponse)
async def remove_vote(
    poll_id: str,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    pid = _poll_id_or_404(poll_id)
    try:
        await poll_service.remove_vote(pid, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("poll.unvote_error", poll_id=poll_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return SuccessResponse()


@router.delete("/{poll_id}", response_model=MessageResponse)
async def delete_poll(
    poll_id: str,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    pid = _poll_id_or_404(poll_id)
    try:
        await poll_service.delete_poll(pid, identity, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("poll.delete_error", poll_id=poll_id, user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return MessageResponse(message="Sondage supprimé avec succès")


@router.post("/{poll_id}/close", response_model=PollCloseResponse)
async def close_poll(
    poll_id: str,
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Close a poll and add its two leading options as contributions."""
    pid = _poll_id_or_404(poll_id)
    try:
        result = await poll_service.close_poll(pid, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("poll.close_error", poll_id=poll_id, admin_id=str(admin.user_id))
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)
    return PollCloseResponse(**result)
