"""
Tests for PATCH /api/profile.
"""

from __future__ import annotations

import pytest

from conftest import bearer, make_user


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_updates_fields(self, client, db):
        user = await make_user(db, "Marie")
        await db.commit()

        resp = await client.patch(
            "/api/profile",
            json={"name": " Marie-Claire ", "email": "marie@famille.fr", "avatar": "🎅"},
            headers=bearer(user.id),
        )
        assert resp.status_code == 200
        assert resp.json() == {
            "user": {
                "id": str(user.id),
                "name": "Marie-Claire",
                "email": "marie@famille.fr",
                "avatar": "🎅",
                "role": "USER",
            }
        }

    @pytest.mark.asyncio
    async def test_empty_email_clears_it(self, client, db):
        user = await make_user(db, "Marie", email="marie@famille.fr")
        await db.commit()

        resp = await client.patch("/api/profile", json={"email": ""}, headers=bearer(user.id))
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] is None

        await db.refresh(user)
        assert user.email is None

    @pytest.mark.asyncio
    async def test_email_taken(self, client, db):
        await make_user(db, "Paul", email="paul@famille.fr")
        user = await make_user(db, "Marie")
        await db.commit()

        resp = await client.patch("/api/profile", json={"email": "paul@famille.fr"}, headers=bearer(user.id))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Cet email est déjà utilisé"}

    @pytest.mark.asyncio
    async def test_invalid_email(self, client, db):
        user = await make_user(db, "Marie")
        await db.commit()

        resp = await client.patch("/api/profile", json={"email": "pas-un-email"}, headers=bearer(user.id))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Email invalide"}

    @pytest.mark.asyncio
    async def test_name_too_short(self, client, db):
        user = await make_user(db, "Marie")
        await db.commit()

        resp = await client.patch("/api/profile", json={"name": "M"}, headers=bearer(user.id))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Le nom doit contenir au moins 2 caractères"}

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        resp = await client.patch("/api/profile", json={"avatar": "🎅"}, headers=bearer())
        assert resp.status_code == 404
        assert resp.json() == {"error": "Utilisateur non trouvé"}

    @pytest.mark.asyncio
    async def test_requires_login(self, client):
        resp = await client.patch("/api/profile", json={"avatar": "🎅"})
        assert resp.status_code == 401
