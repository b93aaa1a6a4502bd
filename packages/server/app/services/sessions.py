"""
Session service — login by event code and refresh-token persistence.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import (
    Identity,
    create_access_token,
    create_refresh_token,
    parse_expiry,
    verify_refresh_token,
)
from app.core.config import get_settings
from app.models.base import ensure_utc
from app.models.event import Event, EventUser
from app.models.event_code import EventCodeEvent
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.services.codes import get_code_by_value
from noel_famille_shared.schemas.auth import LoginRequest

log = structlog.get_logger()
settings = get_settings()


# ---------------------------------------------------------------------------
# Refresh-token store
# ---------------------------------------------------------------------------

async def save_refresh_token(user_id: uuid.UUID, token: str, session: AsyncSession) -> None:
    """Persist a refresh token. Re-saving an existing token re-activates it for `user_id`."""
    expires_at = datetime.now(timezone.utc) + parse_expiry(settings.jwt_refresh_expiry)
    result = await session.execute(select(RefreshToken).where(RefreshToken.token == token))
    stored = result.scalar_one_or_none()
    if stored:
        stored.user_id = user_id
        stored.expires_at = expires_at
        stored.revoked_at = None
        session.add(stored)
    else:
        session.add(RefreshToken(token=token, user_id=user_id, expires_at=expires_at))
    await session.flush()


async def revoke_refresh_token(token: str, session: AsyncSession) -> None:
    await session.execute(
        update(RefreshToken)
        .where(RefreshToken.token == token)
        .values(revoked_at=datetime.now(timezone.utc))
    )


async def is_refresh_token_valid(token: str, session: AsyncSession) -> bool:
    result = await session.execute(select(RefreshToken).where(RefreshToken.token == token))
    stored = result.scalar_one_or_none()
    if not stored or stored.revoked_at is not None:
        return False
    return ensure_utc(stored.expires_at) >= datetime.now(timezone.utc)


async def issue_tokens(user: User, session: AsyncSession) -> tuple[str, str]:
    """Create and persist a fresh (access, refresh) pair for `user`."""
    identity = Identity(user_id=user.id, name=user.name, role=user.role)
    access_token = create_access_token(identity)
    refresh_token = create_refresh_token(identity)
    await save_refresh_token(user.id, refresh_token, session)
    return access_token, refresh_token


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

async def _link_user(user_id: uuid.UUID, event_ids: list[uuid.UUID], session: AsyncSession) -> int:
    if not event_ids:
        return 0
    result = await session.execute(
        select(EventUser.event_id).where(
            EventUser.user_id == user_id, EventUser.event_id.in_(event_ids)
        )
    )
    already = set(result.scalars().all())
    missing = [eid for eid in dict.fromkeys(event_ids) if eid not in already]
    for event_id in missing:
        session.add(EventUser(user_id=user_id, event_id=event_id))
    return len(missing)


async def login_with_code(req: LoginRequest, session: AsyncSession) -> tuple[User, str, str]:
    """Validate the code, find-or-create the user by name and join the code's events.

    Returns (user, access_token, refresh_token).
    """
    code = await get_code_by_value(req.event_code, session)
    if not code or not code.is_active:
        log.warning("auth.login_failure", reason="unknown_code", code=req.event_code)
        raise HTTPException(status_code=401, detail="Code d'événement invalide ou expiré")

    expires_at = ensure_utc(code.expires_at)
    if expires_at and expires_at < datetime.now(timezone.utc):
        log.warning("auth.login_failure", reason="expired_code", code=req.event_code)
        raise HTTPException(status_code=401, detail="Ce code d'événement a expiré")

    result = await session.execute(select(User).where(User.name == req.name))
    user: Optional[User] = result.scalars().first()
    if not user:
        user = User(name=req.name, role="USER")
        session.add(user)
        await session.flush()
        log.info("user.created", user_id=str(user.id), name=user.name)

    result = await session.execute(
        select(EventCodeEvent.event_id).where(EventCodeEvent.code_id == code.id)
    )
    event_ids = list(result.scalars().all())

    if code.is_master:
        result = await session.execute(select(Event.id).where(Event.status != "CLOSED"))
        event_ids.extend(result.scalars().all())

    joined = await _link_user(user.id, event_ids, session)
    await session.flush()

    access_token, refresh_token = await issue_tokens(user, session)
    log.info("auth.login_success", user_id=str(user.id), joined_events=joined)
    return user, access_token, refresh_token


async def rotate_refresh_token(token: str, session: AsyncSession) -> tuple[User, str, str]:
    """Exchange a valid refresh token for a new pair; the old token is revoked."""
    identity = verify_refresh_token(token)
    if identity is None:
        raise HTTPException(status_code=401, detail="Token invalide")

    if not await is_refresh_token_valid(token, session):
        raise HTTPException(status_code=401, detail="Token révoqué ou expiré")

    user = await session.get(User, identity.user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Utilisateur non trouvé")

    await revoke_refresh_token(token, session)
    access_token, refresh_token = await issue_tokens(user, session)
    log.info("auth.session_refreshed", user_id=str(user.id))
    return user, access_token, refresh_token
