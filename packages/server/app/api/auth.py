"""
Authentication endpoints.

- Login with a display name and an event code
- Session refresh (refresh-token rotation) and logout
- Current user profile
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    Identity,
    parse_expiry,
    require_bearer_user,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import MSG_INTERNAL_ERROR
from app.models.user import User
from app.services import sessions as session_service
from app.services import users as user_service
from noel_famille_shared.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    UserProfile,
)
from noel_famille_shared.schemas.common import SuccessResponse

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


def _set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Set the refresh and access token cookies on a response."""
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=not settings.debug,
        samesite="strict",
        path="/",
        max_age=int(parse_expiry(settings.jwt_refresh_expiry).total_seconds()),
    )
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=access_token,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=int(parse_expiry(settings.jwt_access_expiry).total_seconds()),
    )


def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie(REFRESH_COOKIE, path="/")
    response.delete_cookie(ACCESS_COOKIE, path="/")


def _session_rejected(message: str) -> JSONResponse:
    response = JSONResponse(status_code=401, content={"error": message})
    _clear_session_cookies(response)
    return response


def _auth_response(user: User, access_token: str) -> AuthResponse:
    return AuthResponse(access_token=access_token, user=UserProfile.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Log in with a name and an event code; joins the code's events."""
    try:
        user, access_token, refresh_token = await session_service.login_with_code(body, session)
        await session.commit()
    except HTTPException:
        raise
    except Exception:
        log.exception("auth.login_error", name=body.name)
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)

    _set_session_cookies(response, access_token, refresh_token)
    return _auth_response(user, access_token)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_session(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Rotate the refresh token from the cookie and issue a new access token."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        return _session_rejected("Token de rafraîchissement manquant")

    try:
        user, access_token, refresh_token = await session_service.rotate_refresh_token(token, session)
        await session.commit()
    except HTTPException as exc:
        return _session_rejected(exc.detail)
    except Exception:
        log.exception("auth.refresh_error")
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)

    _set_session_cookies(response, access_token, refresh_token)
    return _auth_response(user, access_token)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Revoke the refresh token (if any) and clear the session cookies."""
    token = request.cookies.get(REFRESH_COOKIE)
    if token:
        try:
            await session_service.revoke_refresh_token(token, session)
            await session.commit()
        except Exception:
            log.exception("auth.logout_error")
            await session.rollback()

    _clear_session_cookies(response)
    return SuccessResponse()


@router.get("/me", response_model=MeResponse)
async def me(
    identity: Identity = Depends(require_bearer_user),
    session: AsyncSession = Depends(get_session),
):
    """Profile of the bearer-authenticated caller."""
    try:
        profile = await user_service.get_profile(identity.user_id, session)
    except Exception:
        log.exception("auth.me_error", user_id=str(identity.user_id))
        raise HTTPException(status_code=500, detail=MSG_INTERNAL_ERROR)

    if profile is None:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")
    return MeResponse(user=UserProfile(**profile))
