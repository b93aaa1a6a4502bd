"""
Reminder service — email participants about tasks and events due in the next 24h.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.email import EmailGateway
from app.models.event import Event, EventUser
from app.models.task import Task
from app.models.user import User
from app.services.email_templates import (
    EventReminder,
    TaskReminder,
    render_event_reminder,
    render_task_reminder,
)

log = structlog.get_logger()

REMINDER_WINDOW = timedelta(hours=24)


async def _send(gateway: EmailGateway, to: str, rendered) -> bool:
    return await gateway.send_email(to, rendered.subject, rendered.text, rendered.html)


async def send_reminders(
    session: AsyncSession,
    gateway: EmailGateway,
    now: Optional[datetime] = None,
) -> list[dict]:
    """Send task and event reminders. Returns one entry per email actually sent."""
    now = now or datetime.now(timezone.utc)
    horizon = now + REMINDER_WINDOW
    results: list[dict] = []

    # Tasks due soon, assigned to someone with an email
    result = await session.execute(
        select(Task, User, Event)
        .join(Event, Event.id == Task.event_id)
        .join(User, User.id == Task.assignee_id)
        .where(
            Task.due_date >= now,
            Task.due_date <= horizon,
            Task.status != "DONE",
            User.email.is_not(None),
        )
    )
    for task, assignee, event in result.all():
        rendered = render_task_reminder(
            TaskReminder(
                task_title=task.title,
                task_description=task.description,
                due_date=task.due_date,
                event_name=event.name,
                event_location=event.location,
                user_name=assignee.name,
            )
        )
        if await _send(gateway, assignee.email, rendered):
            results.append({"type": "task", "task_id": task.id, "recipient": assignee.email})

    # Open events starting soon, every participant with an email
    result = await session.execute(
        select(Event, User)
        .join(EventUser, EventUser.event_id == Event.id)
        .join(User, User.id == EventUser.user_id)
        .where(
            Event.date >= now,
            Event.date <= horizon,
            Event.status == "OPEN",
            User.email.is_not(None),
        )
    )
    for event, participant in result.all():
        rendered = render_event_reminder(
            EventReminder(
                event_name=event.name,
                event_description=event.description,
                date=event.date,
                end_date=event.end_date,
                location=event.location,
                user_name=participant.name,
            )
        )
        if await _send(gateway, participant.email, rendered):
            results.append({"type": "event", "event_id": event.id, "recipient": participant.email})

    log.info("reminders.sent", count=len(results))
    return results
