"""
Tests for the participant event endpoints (list, detail, tasks of an event).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.models.contribution import Contribution
from app.models.poll import Poll, PollOption, PollVote
from app.models.task import Task

from conftest import bearer, join, make_event, make_user


async def _family(db):
    """One event with two participants, plus an event nobody here joined."""
    soon = datetime.now(timezone.utc) + timedelta(days=2)
    event = await make_event(db, "Réveillon", date=soon, location="Chez Mamie")
    other = await make_event(db, "Jour de l'an", date=soon + timedelta(days=7))
    marie = await make_user(db, "Marie", avatar="🎄")
    paul = await make_user(db, "Paul")
    await join(db, marie, event)
    await join(db, paul, event)
    await db.commit()
    return event, other, marie, paul


class TestListMyEvents:
    @pytest.mark.asyncio
    async def test_only_joined_events_with_counts(self, client, db):
        event, other, marie, _ = await _family(db)
        later = await make_event(db, "Épiphanie", date=datetime.now(timezone.utc) + timedelta(days=30))
        await join(db, marie, later)
        db.add(Contribution(event_id=event.id, title="Bûche", assignee_id=marie.id))
        db.add(Task(event_id=event.id, title="Sapin"))
        await db.commit()

        resp = await client.get("/api/events", headers=bearer(marie.id))
        assert resp.status_code == 200
        events = resp.json()["events"]
        assert [e["name"] for e in events] == ["Réveillon", "Épiphanie"]
        first = events[0]
        assert first["participantCount"] == 2
        assert first["contributionCount"] == 1
        assert first["taskCount"] == 1
        assert first["location"] == "Chez Mamie"

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        resp = await client.get("/api/events")
        assert resp.status_code == 401


class TestEventDetail:
    @pytest.mark.asyncio
    async def test_participants_always_listed(self, client, db):
        event, _, marie, paul = await _family(db)

        resp = await client.get(f"/api/events/{event.id}", headers=bearer(marie.id))
        assert resp.status_code == 200
        data = resp.json()["event"]
        assert data["name"] == "Réveillon"
        assert {p["name"] for p in data["participants"]} == {"Marie", "Paul"}
        assert {"id": str(marie.id), "name": "Marie", "avatar": "🎄"} in data["participants"]
        assert "contributions" not in data
        assert "polls" not in data
        assert "tasks" not in data

    @pytest.mark.asyncio
    async def test_include_sections(self, client, db):
        event, _, marie, paul = await _family(db)
        db.add(Contribution(event_id=event.id, title="Bûche", assignee_id=paul.id))
        db.add(Task(event_id=event.id, title="Sapin", assignee_id=marie.id, created_by_id=paul.id))
        poll = Poll(event_id=event.id, title="Quel vin ?", created_by_id=paul.id)
        db.add(poll)
        await db.flush()
        option = PollOption(poll_id=poll.id, label="Champagne")
        db.add(option)
        await db.flush()
        db.add(PollVote(poll_id=poll.id, option_id=option.id, user_id=marie.id))
        await db.commit()

        resp = await client.get(
            f"/api/events/{event.id}?include=contributions,polls,tasks", headers=bearer(marie.id)
        )
        data = resp.json()["event"]
        assert data["contributions"][0]["title"] == "Bûche"
        assert data["contributions"][0]["assignee"]["name"] == "Paul"
        assert data["tasks"][0]["assignee"]["name"] == "Marie"
        assert data["tasks"][0]["createdBy"]["name"] == "Paul"
        poll_view = data["polls"][0]
        assert poll_view["hasVoted"] is True
        assert poll_view["userVotes"] == [str(option.id)]
        assert poll_view["options"][0]["voteCount"] == 1

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, db):
        _, other, marie, _ = await _family(db)

        resp = await client.get(f"/api/events/{other.id}", headers=bearer(marie.id))
        assert resp.status_code == 403
        assert resp.json() == {"error": "Accès non autorisé à cet événement"}

    @pytest.mark.asyncio
    async def test_admin_sees_any_event(self, client, db, admin_headers):
        _, other, _, _ = await _family(db)

        resp = await client.get(f"/api/events/{other.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["event"]["participants"] == []

    @pytest.mark.asyncio
    async def test_unknown_event_for_admin(self, client, admin_headers):
        resp = await client.get(f"/api/events/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Événement non trouvé"}

    @pytest.mark.asyncio
    async def test_malformed_event_id(self, client, admin_headers):
        resp = await client.get("/api/events/reveillon", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Événement non trouvé"}


class TestEventTasks:
    @pytest.mark.asyncio
    async def test_lists_tasks_newest_first(self, client, db):
        event, _, marie, paul = await _family(db)
        now = datetime.now(timezone.utc)
        db.add(Task(event_id=event.id, title="Sapin", created_at=now - timedelta(hours=2)))
        db.add(Task(event_id=event.id, title="Guirlandes", created_at=now))
        await db.commit()

        resp = await client.get(f"/api/events/{event.id}/tasks", headers=bearer(marie.id))
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert [t["title"] for t in data["tasks"]] == ["Guirlandes", "Sapin"]

    @pytest.mark.asyncio
    async def test_private_tasks_hidden_from_others(self, client, db):
        event, _, marie, paul = await _family(db)
        db.add(Task(event_id=event.id, title="Cadeau de Paul", is_private=True, created_by_id=marie.id))
        db.add(Task(event_id=event.id, title="Sapin"))
        await db.commit()

        as_paul = await client.get(f"/api/events/{event.id}/tasks", headers=bearer(paul.id))
        as_marie = await client.get(f"/api/events/{event.id}/tasks", headers=bearer(marie.id))
        assert [t["title"] for t in as_paul.json()["tasks"]] == ["Sapin"]
        assert as_marie.json()["count"] == 2

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, db, user_headers):
        event, _, _, _ = await _family(db)

        resp = await client.get(f"/api/events/{event.id}/tasks", headers=user_headers)
        assert resp.status_code == 403
