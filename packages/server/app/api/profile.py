"""
Profile endpoint.

PATCH /api/profile — Update the caller's name, email or avatar
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_user
from app.core.database import get_session
from app.core.errors import MSG_SERVER_ERROR
from app.services import users as user_service
from noel_famille_shared.schemas.auth import MeResponse, ProfileUpdateRequest, UserProfile

log = structlog.get_logger()
router = APIRouter()


@router.patch("", response_model=MeResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    try:
        profile = await user_service.update_profile(identity.user_id, body, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("profile.update_error", user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return MeResponse(user=UserProfile(**profile))
