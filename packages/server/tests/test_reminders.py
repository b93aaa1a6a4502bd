"""
Tests for reminder emails: rendering, selection of tasks/events, and the cron endpoint.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.core.email import get_email_gateway
from app.main import app as fastapi_app
from app.models.task import Task
from app.services.email_templates import (
    EventReminder,
    TaskReminder,
    format_date_fr,
    format_time_fr,
    render_event_reminder,
    render_task_reminder,
)
from app.services.reminders import send_reminders

from conftest import join, make_event, make_user


class FakeGateway:
    """Records every message instead of sending it."""

    def __init__(self, fail_for: tuple[str, ...] = ()):
        self.sent: list[dict] = []
        self.fail_for = fail_for

    async def send_email(self, to, subject, text, html=None) -> bool:
        if to in self.fail_for:
            return False
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return True


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestTemplates:
    def test_french_date_in_display_timezone(self):
        # 23:30 UTC on the 24th is already the 25th in Paris
        value = datetime(2025, 12, 24, 23, 30, tzinfo=timezone.utc)
        assert format_date_fr(value) == "jeudi 25 décembre 2025"
        assert format_time_fr(value) == "00:30"

    def test_naive_values_are_treated_as_utc(self):
        assert format_time_fr(datetime(2025, 7, 14, 10, 0)) == "12:00"

    def test_task_reminder(self):
        rendered = render_task_reminder(
            TaskReminder(
                task_title="Acheter le sapin",
                due_date=datetime(2025, 12, 20, 9, 0, tzinfo=timezone.utc),
                event_name="Réveillon",
                user_name="Pierre",
                event_location="Chez Mamie",
            )
        )
        assert rendered.subject == "🎄 Rappel : Acheter le sapin"
        assert "Bonjour Pierre," in rendered.text
        assert "samedi 20 décembre 2025 à 10:00" in rendered.text
        assert "📍 Lieu : Chez Mamie" in rendered.text
        assert "<strong>Pierre</strong>" in rendered.html
        assert "#10b981" in rendered.html

    def test_event_reminder_escapes_html(self):
        rendered = render_event_reminder(
            EventReminder(
                event_name="Noël <chez nous>",
                date=datetime(2025, 12, 24, 18, 0, tzinfo=timezone.utc),
                user_name="Emma",
            )
        )
        assert "Noël <chez nous>" in rendered.text
        assert "Noël &lt;chez nous&gt;" in rendered.html
        assert "Lieu" not in rendered.text
        assert "#ef4444" in rendered.html


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class TestSendReminders:
    @pytest.mark.asyncio
    async def test_selects_due_tasks_and_upcoming_events(self, db):
        now = datetime.now(timezone.utc)
        soon = await make_event(db, "Réveillon", date=now + timedelta(hours=12))
        far = await make_event(db, "Jour de l'an", date=now + timedelta(days=7))
        draft = await make_event(db, "Brouillon", date=now + timedelta(hours=6), status="DRAFT")

        mamie = await make_user(db, "Mamie", email="mamie@famille.fr")
        papy = await make_user(db, "Papy", email="papy@famille.fr")
        lucas = await make_user(db, "Lucas")  # no email
        for user in (mamie, papy, lucas):
            await join(db, user, soon)
            await join(db, user, far)
            await join(db, user, draft)

        due = Task(event_id=far.id, title="Sapin", assignee_id=papy.id, due_date=now + timedelta(hours=3))
        db.add(due)
        db.add(Task(event_id=far.id, title="Fait", assignee_id=papy.id, status="DONE",
                    due_date=now + timedelta(hours=3)))
        db.add(Task(event_id=far.id, title="Plus tard", assignee_id=papy.id,
                    due_date=now + timedelta(days=3)))
        db.add(Task(event_id=far.id, title="En retard", assignee_id=papy.id,
                    due_date=now - timedelta(hours=1)))
        db.add(Task(event_id=far.id, title="Sans email", assignee_id=lucas.id,
                    due_date=now + timedelta(hours=3)))
        db.add(Task(event_id=far.id, title="Personne", due_date=now + timedelta(hours=3)))
        await db.commit()

        gateway = FakeGateway()
        results = await send_reminders(db, gateway, now=now)

        tasks = [r for r in results if r["type"] == "task"]
        events = [r for r in results if r["type"] == "event"]
        assert tasks == [{"type": "task", "task_id": due.id, "recipient": "papy@famille.fr"}]
        assert sorted(r["recipient"] for r in events) == ["mamie@famille.fr", "papy@famille.fr"]
        assert all(r["event_id"] == soon.id for r in events)
        assert len(gateway.sent) == 3
        assert {m["subject"] for m in gateway.sent} == {"🎄 Rappel : Sapin", "🎄 Rappel : Réveillon"}

    @pytest.mark.asyncio
    async def test_failed_sends_are_not_reported(self, db):
        now = datetime.now(timezone.utc)
        event = await make_event(db, date=now + timedelta(hours=2))
        for name, email in (("Mamie", "mamie@famille.fr"), ("Papy", "papy@famille.fr")):
            await join(db, await make_user(db, name, email=email), event)
        await db.commit()

        results = await send_reminders(db, FakeGateway(fail_for=("papy@famille.fr",)), now=now)
        assert [r["recipient"] for r in results] == ["mamie@famille.fr"]

    @pytest.mark.asyncio
    async def test_nothing_due(self, db):
        await make_event(db, date=datetime.now(timezone.utc) + timedelta(days=5))
        await db.commit()
        assert await send_reminders(db, FakeGateway()) == []


# ---------------------------------------------------------------------------
# Endpoint: GET /api/reminders/send
# ---------------------------------------------------------------------------

class TestRemindersEndpoint:
    @pytest.fixture
    def gateway(self):
        gateway = FakeGateway()
        fastapi_app.dependency_overrides[get_email_gateway] = lambda: gateway
        yield gateway
        fastapi_app.dependency_overrides.pop(get_email_gateway, None)

    @pytest.mark.asyncio
    async def test_reports_sent_reminders(self, client, db, gateway):
        event = await make_event(db, date=datetime.now(timezone.utc) + timedelta(hours=5))
        await join(db, await make_user(db, "Mamie", email="mamie@famille.fr"), event)
        await db.commit()

        resp = await client.get("/api/reminders/send")
        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "sent": 1,
            "results": [{"type": "event", "eventId": str(event.id), "recipient": "mamie@famille.fr"}],
        }
        assert gateway.sent[0]["to"] == "mamie@famille.fr"

    @pytest.mark.asyncio
    async def test_requires_cron_secret(self, client, gateway):
        settings = MagicMock()
        settings.cron_secret = "s3cret"
        with patch("app.core.auth.get_settings", return_value=settings):
            resp = await client.get("/api/reminders/send")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Non autorisé"}
        assert gateway.sent == []
