"""
Tests for contributions: what each participant brings.
"""

from __future__ import annotations

import uuid

import pytest
from sqlmodel import select

from app.models.contribution import Contribution

from conftest import bearer, join, make_event, make_user


async def _setup(db):
    event = await make_event(db)
    marie = await make_user(db, "Marie")
    paul = await make_user(db, "Paul")
    await join(db, marie, event)
    await join(db, paul, event)
    await db.commit()
    return event, marie, paul


async def _contribution(db, event, assignee) -> Contribution:
    contribution = Contribution(event_id=event.id, title="Bûche", category="plat", assignee_id=assignee.id)
    db.add(contribution)
    await db.commit()
    return contribution


class TestCreateContribution:
    @pytest.mark.asyncio
    async def test_defaults_to_caller(self, client, db):
        event, marie, _ = await _setup(db)

        resp = await client.post(
            "/api/contributions",
            json={"title": "Bûche", "category": "plat", "eventId": str(event.id)},
            headers=bearer(marie.id),
        )
        assert resp.status_code == 201
        data = resp.json()["contribution"]
        assert data["assigneeId"] == str(marie.id)
        assert data["assignee"]["name"] == "Marie"
        assert data["quantity"] == 1
        assert data["status"] == "PLANNED"

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, db, user_headers):
        event, _, _ = await _setup(db)

        resp = await client.post(
            "/api/contributions", json={"title": "Bûche", "eventId": str(event.id)}, headers=user_headers
        )
        assert resp.status_code == 403
        assert resp.json() == {"error": "Accès non autorisé à cet événement"}

    @pytest.mark.asyncio
    async def test_unknown_category(self, client, db, admin_headers):
        event, _, _ = await _setup(db)

        resp = await client.post(
            "/api/contributions",
            json={"title": "Bûche", "category": "dessert", "eventId": str(event.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "category : valeur non autorisée"}

    @pytest.mark.asyncio
    async def test_quantity_bounds(self, client, db, admin_headers):
        event, _, _ = await _setup(db)

        resp = await client.post(
            "/api/contributions",
            json={"title": "Bûche", "quantity": 0, "eventId": str(event.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "quantity doit être supérieur ou égal à 1"}


class TestUpdateContribution:
    @pytest.mark.asyncio
    async def test_participant_confirms(self, client, db):
        event, marie, paul = await _setup(db)
        contribution = await _contribution(db, event, marie)

        resp = await client.patch(
            f"/api/contributions/{contribution.id}",
            json={"status": "CONFIRMED", "quantity": 2},
            headers=bearer(paul.id),
        )
        assert resp.status_code == 200
        data = resp.json()["contribution"]
        assert data["status"] == "CONFIRMED"
        assert data["quantity"] == 2
        assert data["title"] == "Bûche"

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, db, user_headers):
        event, marie, _ = await _setup(db)
        contribution = await _contribution(db, event, marie)

        resp = await client.patch(
            f"/api/contributions/{contribution.id}", json={"status": "BROUGHT"}, headers=user_headers
        )
        assert resp.status_code == 403
        assert resp.json() == {"error": "Accès non autorisé"}

    @pytest.mark.asyncio
    async def test_unknown_contribution(self, client, admin_headers):
        resp = await client.patch(
            f"/api/contributions/{uuid.uuid4()}", json={"status": "BROUGHT"}, headers=admin_headers
        )
        assert resp.status_code == 404
        assert resp.json() == {"error": "Contribution non trouvée"}


class TestDeleteContribution:
    @pytest.mark.asyncio
    async def test_assignee_deletes(self, client, db):
        event, marie, _ = await _setup(db)
        contribution = await _contribution(db, event, marie)

        resp = await client.delete(f"/api/contributions/{contribution.id}", headers=bearer(marie.id))
        assert resp.status_code == 200
        assert (await db.execute(select(Contribution))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_other_participant_forbidden(self, client, db):
        event, marie, paul = await _setup(db)
        contribution = await _contribution(db, event, marie)

        resp = await client.delete(f"/api/contributions/{contribution.id}", headers=bearer(paul.id))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_deletes(self, client, db, admin_headers):
        event, marie, _ = await _setup(db)
        contribution = await _contribution(db, event, marie)

        resp = await client.delete(f"/api/contributions/{contribution.id}", headers=admin_headers)
        assert resp.status_code == 200
