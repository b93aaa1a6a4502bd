"""
Background tasks: close expired polls and send reminder emails.

Scheduled by the ARQ worker settings below; the same work is reachable on
demand via GET /api/polls/auto-close and GET /api/reminders/send.
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.email import get_email_gateway
from app.services.polls import close_expired_polls
from app.services.reminders import send_reminders

log = structlog.get_logger()


async def close_expired_polls_job(ctx: dict) -> int:
    """Close polls whose auto_close time has passed.

    Returns the number of polls closed.
    """
    async with get_session_context() as session:
        closed = await close_expired_polls(session)

    if closed:
        log.info("poll_expiry.batch_closed", count=len(closed))
    return len(closed)


async def send_reminders_job(ctx: dict) -> int:
    """Send the daily reminder emails. Returns the number sent."""
    async with get_session_context() as session:
        results = await send_reminders(session, get_email_gateway())
    return len(results)


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration. Run with `arq app.tasks.poll_expiry.WorkerSettings`."""

    functions = [close_expired_polls_job, send_reminders_job]
    cron_jobs = [
        # Every 5 minutes
        cron(close_expired_polls_job, minute=set(range(0, 60, 5))),
        # Daily at 08:00
        cron(send_reminders_job, hour=8, minute=0),
    ]
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
