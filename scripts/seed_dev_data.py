#!/usr/bin/env python3
"""Seed a development database with family members, events, join codes and polls.

Usage:
    python scripts/seed_dev_data.py

Requires DATABASE_URL (or defaults to localhost). Tables are created if missing.
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from app.core.database import get_session_context, init_db

# Deterministic UUIDs for reproducibility
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
MEMBER_IDS = [uuid.UUID(f"00000000-0000-0000-0000-0000000000{i:02d}") for i in range(10, 16)]
EVENT_IDS = [uuid.UUID(f"00000000-0000-0000-0000-0000000001{i:02d}") for i in range(2)]
CODE_IDS = [uuid.UUID(f"00000000-0000-0000-0000-0000000002{i:02d}") for i in range(3)]
POLL_IDS = [uuid.UUID(f"00000000-0000-0000-0000-0000000003{i:02d}") for i in range(2)]

PARIS = timezone(timedelta(hours=1))


async def seed():
    await init_db()

    async with get_session_context() as session:
        # Users
        await session.execute(text("""
            INSERT INTO users (id, name, email, avatar, role)
            VALUES (:id, :name, :email, :avatar, 'ADMIN')
            ON CONFLICT (id) DO NOTHING
        """), {"id": ADMIN_ID, "name": "Admin Famille", "email": "admin@famille.fr", "avatar": "🎅"})

        members = [
            ("Mamie Françoise", "mamie@famille.fr", "👵"),
            ("Papy Jean", "papy@famille.fr", "👴"),
            ("Marie", None, "👩"),
            ("Pierre", None, "👨"),
            ("Lucas", None, "👦"),
            ("Emma", None, "👧"),
        ]
        for uid, (name, email, avatar) in zip(MEMBER_IDS, members):
            await session.execute(text("""
                INSERT INTO users (id, name, email, avatar, role)
                VALUES (:id, :name, :email, :avatar, 'USER')
                ON CONFLICT (id) DO NOTHING
            """), {"id": uid, "name": name, "email": email, "avatar": avatar})

        # Events
        events = [
            (
                "Réveillon de Noël 2025",
                "Soirée du réveillon chez Mamie et Papy. Apéro dès 19h, repas à 20h30.",
                datetime(2025, 12, 24, 19, 0, tzinfo=PARIS),
                datetime(2025, 12, 25, 2, 0, tzinfo=PARIS),
            ),
            (
                "Déjeuner de Noël 2025",
                "Déjeuner de Noël en famille. Ouverture des cadeaux à 11h, repas à 12h30.",
                datetime(2025, 12, 25, 11, 0, tzinfo=PARIS),
                datetime(2025, 12, 25, 17, 0, tzinfo=PARIS),
            ),
        ]
        for eid, (name, description, start, end) in zip(EVENT_IDS, events):
            await session.execute(text("""
                INSERT INTO events (id, name, description, date, end_date, location, map_url, status)
                VALUES (:id, :name, :description, :date, :end_date, :location, :map_url, 'OPEN')
                ON CONFLICT (id) DO NOTHING
            """), {
                "id": eid,
                "name": name,
                "description": description,
                "date": start,
                "end_date": end,
                "location": "12 Rue des Sapins, 75001 Paris",
                "map_url": "https://maps.google.com/?q=12+Rue+des+Sapins+Paris",
            })

        # Participants
        for uid in [ADMIN_ID, *MEMBER_IDS]:
            for eid in EVENT_IDS:
                await session.execute(text("""
                    INSERT INTO event_users (user_id, event_id, joined_at)
                    VALUES (:uid, :eid, now())
                    ON CONFLICT DO NOTHING
                """), {"uid": uid, "eid": eid})

        # Join codes: one per event + a master code
        codes = [
            (CODE_IDS[0], "NOEL-2025-SOIR", False, [EVENT_IDS[0]]),
            (CODE_IDS[1], "NOEL-2025-MIDI", False, [EVENT_IDS[1]]),
            (CODE_IDS[2], "NOEL-2025-MASTER", True, EVENT_IDS),
        ]
        for cid, code, is_master, event_ids in codes:
            await session.execute(text("""
                INSERT INTO event_codes (id, code, is_active, is_master)
                VALUES (:id, :code, true, :is_master)
                ON CONFLICT (id) DO NOTHING
            """), {"id": cid, "code": code, "is_master": is_master})
            for eid in event_ids:
                await session.execute(text("""
                    INSERT INTO event_code_events (code_id, event_id)
                    VALUES (:cid, :eid)
                    ON CONFLICT DO NOTHING
                """), {"cid": cid, "eid": eid})

        # Polls: one already past its auto-close time, one still running
        now = datetime.now(timezone.utc)
        polls = [
            (POLL_IDS[0], "Quel dessert pour le réveillon ?", now - timedelta(hours=1)),
            (POLL_IDS[1], "Quelle boisson pour le déjeuner ?", now + timedelta(days=3)),
        ]
        for (pid, title, auto_close), eid in zip(polls, EVENT_IDS):
            await session.execute(text("""
                INSERT INTO polls (id, event_id, created_by_id, title, type, is_closed, auto_close)
                VALUES (:id, :eid, :admin, :title, 'SINGLE', false, :auto_close)
                ON CONFLICT (id) DO NOTHING
            """), {"id": pid, "eid": eid, "admin": ADMIN_ID, "title": title, "auto_close": auto_close})

    print(f"Seeded: 1 admin, {len(MEMBER_IDS)} members, {len(EVENT_IDS)} events, "
          f"{len(CODE_IDS)} codes, {len(POLL_IDS)} polls")


if __name__ == "__main__":
    asyncio.run(seed())
