"""
Admin endpoints.

GET    /api/admin/events        — List events with participant/contribution/task counts
GET    /api/admin/codes         — List join codes
POST   /api/admin/codes         — Create a join code
DELETE /api/admin/codes/{id}    — Delete a join code
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Identity, require_admin
from app.core.database import get_session
from app.core.errors import MSG_SERVER_ERROR
from app.services import codes as code_service
from app.services import events as event_service
from noel_famille_shared.schemas.codes import (
    CodeCreateRequest,
    CodeCreateResponse,
    CodeListResponse,
    CodeResponse,
)
from noel_famille_shared.schemas.common import SuccessResponse
from noel_famille_shared.schemas.events import AdminEventItem, AdminEventListResponse

log = structlog.get_logger()
router = APIRouter()


@router.get("/events", response_model=AdminEventListResponse)
async def list_events(
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """List all events, soonest first, with aggregate counts."""
    try:
        items = await event_service.list_events_with_counts(session)
    except Exception:
        log.exception("admin.events_list_error", admin_id=str(admin.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return AdminEventListResponse(events=[AdminEventItem(**item) for item in items])


@router.get("/codes", response_model=CodeListResponse)
async def list_codes(
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    try:
        items = await code_service.list_codes(session)
    except Exception:
        log.exception("admin.codes_list_error", admin_id=str(admin.user_id))
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return CodeListResponse(codes=[CodeResponse(**item) for item in items])


@router.post("/codes", response_model=CodeCreateResponse, status_code=201)
async def create_code(
    body: CodeCreateRequest,
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create a join code for one or more events."""
    try:
        item = await code_service.create_code(body, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("admin.code_create_error", admin_id=str(admin.user_id), code=body.code)
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return CodeCreateResponse(code=CodeResponse(**item))


@router.delete("/codes/{code_id}", response_model=SuccessResponse)
async def delete_code(
    code_id: str,
    admin: Identity = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Delete a join code. Unknown or malformed ids are reported as a server error."""
    try:
        await code_service.delete_code(uuid.UUID(code_id), session)
        await session.commit()
    except Exception:
        log.exception("admin.code_delete_error", admin_id=str(admin.user_id), code_id=code_id)
        raise HTTPException(status_code=500, detail=MSG_SERVER_ERROR)
    return SuccessResponse()
