"""
Reminder endpoint.

GET /api/reminders/send — Email reminders for tasks and events in the next 24h (cron)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import require_cron_secret
from app.core.database import get_session
from app.core.email import EmailGateway, get_email_gateway
from app.core.errors import MSG_INTERNAL_ERROR
from app.services import reminders as reminder_service
from noel_famille_shared.schemas.reminders import ReminderResult, ReminderRunResponse

log = structlog.get_logger()
router = APIRouter()


@router.get(
    "/send",
    response_model=ReminderRunResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_cron_secret)],
)
async def send_reminders(
    session: AsyncSession = Depends(get_session),
    gateway: EmailGateway = Depends(get_email_gateway),
):
    try:
        results = await reminder_service.send_reminders(session, gateway)
    except Exception:
        log.exception("reminders.send_error")
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)
    return ReminderRunResponse(
        sent=len(results),
        results=[ReminderResult(**r) for r in results],
    )
