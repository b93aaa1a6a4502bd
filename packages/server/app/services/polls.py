"""
Poll service: creation, voting, the expiry sweep and manual close.

The sweep closes every open poll whose auto_close time has passed. It is
safe to re-run: closed polls no longer match. Two concurrent sweeps can
both report the same polls; nothing serializes them.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import Identity
from app.models.base import ensure_utc
from app.models.contribution import Contribution
from app.models.poll import Poll, PollOption, PollVote
from app.services.access import (
    MSG_FORBIDDEN,
    ensure_event_access,
    get_event_or_404,
    user_refs,
)
from app.services.contributions import contribution_info
from noel_famille_shared.schemas.polls import PollCreateRequest

log = structlog.get_logger()

POLL_CONTRIBUTION_LIMIT = 2


async def close_expired_polls(
    session: AsyncSession, now: Optional[datetime] = None
) -> list[dict]:
    """Close open polls with auto_close <= now. Returns the polls closed by this call."""
    now = now or datetime.now(timezone.utc)

    result = await session.execute(
        select(Poll.id, Poll.title, Poll.event_id).where(
            Poll.is_closed == False,  # noqa: E712
            Poll.auto_close <= now,
        )
    )
    expired = [
        {"id": poll_id, "title": title, "event_id": event_id}
        for poll_id, title, event_id in result.all()
    ]

    if expired:
        # Update exactly the captured ids, not the predicate again.
        await session.execute(
            update(Poll)
            .where(Poll.id.in_([p["id"] for p in expired]))
            .values(is_closed=True, closed_at=now)
        )
        log.info("polls.auto_closed", count=len(expired))

    return expired


async def _option_counts(poll_id: uuid.UUID, session: AsyncSession) -> list[tuple[PollOption, int]]:
    result = await session.execute(
        select(PollOption, func.count(PollVote.id))
        .outerjoin(PollVote, PollVote.option_id == PollOption.id)
        .where(PollOption.poll_id == poll_id)
        .group_by(PollOption.id)
        .order_by(PollOption.position)
    )
    return [(option, votes) for option, votes in result.all()]


async def close_poll(poll_id: uuid.UUID, session: AsyncSession) -> dict:
    """Close a poll by hand and turn its two leading options into contributions."""
    poll = await session.get(Poll, poll_id)
    if not poll:
        raise HTTPException(status_code=404, detail="Sondage non trouvé")
    if poll.is_closed:
        raise HTTPException(status_code=400, detail="Ce sondage est déjà fermé")

    counts = await _option_counts(poll.id, session)
    ranked = sorted(counts, key=lambda pair: pair[1], reverse=True)
    winners = [(opt, votes) for opt, votes in ranked[:POLL_CONTRIBUTION_LIMIT] if votes > 0]

    created = []
    for option, _votes in winners:
        contribution = Contribution(
            event_id=poll.event_id,
            title=option.label,
            description=f'Ajouté automatiquement depuis le sondage: "{poll.title}"',
            category="autre",
            quantity=1,
            status="PLANNED",
            from_poll_id=poll.id,
        )
        session.add(contribution)
        created.append(contribution)

    poll.is_closed = True
    poll.closed_at = datetime.now(timezone.utc)
    session.add(poll)
    await session.flush()

    if winners:
        message = f"Sondage fermé. {len(winners)} contribution(s) ajoutée(s) automatiquement."
    else:
        message = "Sondage fermé. Aucune contribution ajoutée (pas de votes)."

    log.info("poll.closed", poll_id=str(poll.id), contributions=len(created))
    return {
        "poll": {
            "id": poll.id,
            "event_id": poll.event_id,
            "title": poll.title,
            "description": poll.description,
            "type": poll.type,
            "is_closed": poll.is_closed,
            "auto_close": poll.auto_close,
            "closed_at": poll.closed_at,
            "options": [
                {"id": opt.id, "label": opt.label, "vote_count": votes}
                for opt, votes in counts
            ],
        },
        "created_contributions": [contribution_info(c) for c in created],
        "message": message,
    }


async def poll_views(
    polls: list[Poll], user_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """Polls with per-option tallies, voters and the given user's own votes."""
    if not polls:
        return []
    poll_ids = [p.id for p in polls]

    options = (
        await session.execute(
            select(PollOption)
            .where(PollOption.poll_id.in_(poll_ids))
            .order_by(PollOption.position)
        )
    ).scalars().all()
    votes = (
        await session.execute(
            select(PollVote)
            .where(PollVote.poll_id.in_(poll_ids))
            .order_by(PollVote.created_at)
        )
    ).scalars().all()
    users = await user_refs(
        [v.user_id for v in votes] + [p.created_by_id for p in polls], session
    )

    options_by_poll: dict[uuid.UUID, list[PollOption]] = defaultdict(list)
    for option in options:
        options_by_poll[option.poll_id].append(option)
    votes_by_option: dict[uuid.UUID, list[PollVote]] = defaultdict(list)
    for v in votes:
        votes_by_option[v.option_id].append(v)

    views = []
    for poll in polls:
        mine = [v.option_id for v in votes if v.poll_id == poll.id and v.user_id == user_id]
        views.append(
            {
                "id": poll.id,
                "event_id": poll.event_id,
                "title": poll.title,
                "description": poll.description,
                "type": poll.type,
                "is_closed": poll.is_closed,
                "auto_close": ensure_utc(poll.auto_close),
                "closed_at": ensure_utc(poll.closed_at),
                "created_by_id": poll.created_by_id,
                "created_by": users.get(poll.created_by_id),
                "options": [
                    {
                        "id": option.id,
                        "label": option.label,
                        "vote_count": len(votes_by_option[option.id]),
                        "voters": [
                            users[v.user_id]
                            for v in votes_by_option[option.id]
                            if v.user_id in users
                        ],
                    }
                    for option in options_by_poll[poll.id]
                ],
                "has_voted": bool(mine),
                "user_votes": mine,
            }
        )
    return views


async def list_event_polls(
    event_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    result = await session.execute(
        select(Poll).where(Poll.event_id == event_id).order_by(Poll.created_at.desc())
    )
    return await poll_views(list(result.scalars().all()), user_id, session)


async def create_poll(req: PollCreateRequest, identity: Identity, session: AsyncSession) -> dict:
    await ensure_event_access(identity, req.event_id, session, detail=MSG_FORBIDDEN)
    await get_event_or_404(req.event_id, session)

    poll = Poll(
        event_id=req.event_id,
        created_by_id=identity.user_id,
        title=req.title,
        description=req.description,
        type=req.type.value,
        auto_close=req.auto_close,
    )
    session.add(poll)
    await session.flush()
    for position, label in enumerate(req.options):
        session.add(PollOption(poll_id=poll.id, label=label, position=position))
    await session.flush()

    log.info("poll.created", poll_id=str(poll.id), event_id=str(req.event_id), options=len(req.options))
    return (await poll_views([poll], identity.user_id, session))[0]


async def _open_poll_or_error(poll_id: uuid.UUID, session: AsyncSession) -> Poll:
    poll = await session.get(Poll, poll_id)
    if not poll:
        raise HTTPException(status_code=404, detail="Sondage non trouvé")
    if poll.is_closed:
        raise HTTPException(status_code=400, detail="Ce sondage est fermé")
    return poll


async def vote(
    poll_id: uuid.UUID,
    option_ids: list[uuid.UUID],
    identity: Identity,
    session: AsyncSession,
) -> dict:
    """Replace the caller's votes on a poll with the given options."""
    poll = await _open_poll_or_error(poll_id, session)
    await ensure_event_access(identity, poll.event_id, session, detail=MSG_FORBIDDEN)

    if poll.type == "SINGLE" and len(option_ids) > 1:
        raise HTTPException(status_code=400, detail="Une seule option autorisée pour ce sondage")

    result = await session.execute(select(PollOption.id).where(PollOption.poll_id == poll.id))
    valid = set(result.scalars().all())
    if any(option_id not in valid for option_id in option_ids):
        raise HTTPException(status_code=400, detail="Option invalide")

    await session.execute(
        delete(PollVote).where(PollVote.poll_id == poll.id, PollVote.user_id == identity.user_id)
    )
    for option_id in option_ids:
        session.add(PollVote(poll_id=poll.id, option_id=option_id, user_id=identity.user_id))
    await session.flush()

    log.info("poll.voted", poll_id=str(poll.id), user_id=str(identity.user_id), options=len(option_ids))
    return (await poll_views([poll], identity.user_id, session))[0]


async def remove_vote(poll_id: uuid.UUID, identity: Identity, session: AsyncSession) -> None:
    poll = await _open_poll_or_error(poll_id, session)
    await session.execute(
        delete(PollVote).where(PollVote.poll_id == poll.id, PollVote.user_id == identity.user_id)
    )


async def delete_poll(poll_id: uuid.UUID, identity: Identity, session: AsyncSession) -> None:
    """Only the poll's creator or an admin may delete it. Contributions it produced are kept."""
    poll = await session.get(Poll, poll_id)
    if not poll:
        raise HTTPException(status_code=404, detail="Sondage non trouvé")
    if not identity.is_admin and poll.created_by_id != identity.user_id:
        raise HTTPException(
            status_code=403, detail="Vous n'êtes pas autorisé à supprimer ce sondage"
        )

    await session.execute(
        update(Contribution).where(Contribution.from_poll_id == poll.id).values(from_poll_id=None)
    )
    await session.execute(delete(PollVote).where(PollVote.poll_id == poll.id))
    await session.execute(delete(PollOption).where(PollOption.poll_id == poll.id))
    await session.delete(poll)
    await session.flush()
    log.info("poll.deleted", poll_id=str(poll_id), user_id=str(identity.user_id))
