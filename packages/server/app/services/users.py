"""
User service: profile lookup and self-service profile edits.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.user import User
from noel_famille_shared.schemas.auth import ProfileUpdateRequest

log = structlog.get_logger()


async def get_profile(user_id: uuid.UUID, session: AsyncSession) -> Optional[dict]:
    """Read-only projection of a user, or None if the id is unknown."""
    result = await session.execute(
        select(User.id, User.name, User.email, User.avatar, User.role).where(User.id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    return dict(row._mapping)


async def update_profile(
    user_id: uuid.UUID, req: ProfileUpdateRequest, session: AsyncSession
) -> dict:
    """Apply the fields present in the request. An empty email removes the address."""
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")

    changes = req.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        user.name = changes["name"]
    if "avatar" in changes:
        user.avatar = changes["avatar"]
    if changes.get("email") is not None:
        email = changes["email"] or None
        if email is not None:
            result = await session.execute(
                select(User.id).where(User.email == email, User.id != user.id)
            )
            if result.first() is not None:
                raise HTTPException(status_code=400, detail="Cet email est déjà utilisé")
        user.email = email

    session.add(user)
    await session.flush()
    log.info("user.profile_updated", user_id=str(user.id), fields=sorted(changes))
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role,
    }
