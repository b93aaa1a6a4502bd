"""
Authentication and Authorization for Noël Famille.

Supports:
- Signed access/refresh JWTs carrying the identity claim (userId, name, role)
- Credential extraction from the Authorization header or the access cookie
- Guard dependencies (any user, bearer-only user, admin)
- Shared-secret gate for scheduled endpoints
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request

from app.core.config import get_settings

log = structlog.get_logger()
settings = get_settings()

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refreshToken"
ADMIN_ROLE = "ADMIN"

MSG_UNAUTHENTICATED = "Non authentifié"
MSG_FORBIDDEN = "Accès non autorisé"
MSG_UNAUTHORIZED = "Non autorisé"

_EXPIRY_RE = re.compile(r"^(\d+)([smhd])$")
_EXPIRY_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


# ---------------------------------------------------------------------------
# Identity claim
# ---------------------------------------------------------------------------

class Identity:
    """Decoded identity claim. Not persisted."""

    def __init__(self, user_id: uuid.UUID, name: str, role: str):
        self.user_id = user_id
        self.name = name
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def claims(self) -> dict:
        return {"userId": str(self.user_id), "name": self.name, "role": self.role}

    @classmethod
    def from_payload(cls, payload: dict) -> "Identity":
        return cls(
            user_id=uuid.UUID(payload["userId"]),
            name=payload.get("name", ""),
            role=payload["role"],
        )


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def parse_expiry(expiry: str) -> timedelta:
    """Parse `15m`, `7d`, ... into a timedelta. Unparseable values give 15 minutes."""
    match = _EXPIRY_RE.match(expiry.strip())
    if not match:
        return timedelta(minutes=15)
    value, unit = int(match.group(1)), match.group(2)
    return timedelta(**{_EXPIRY_UNITS[unit]: value})


def _encode(identity: Identity, secret: str, lifetime: timedelta, **extra) -> str:
    now = datetime.now(timezone.utc)
    payload = {**identity.claims(), "iat": now, "exp": now + lifetime, **extra}
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def create_access_token(identity: Identity, *, expires_delta: timedelta | None = None) -> str:
    """Create a signed short-lived access token."""
    lifetime = expires_delta or parse_expiry(settings.jwt_access_expiry)
    return _encode(identity, settings.jwt_access_secret, lifetime)


def create_refresh_token(identity: Identity, *, expires_delta: timedelta | None = None) -> str:
    """Create a signed refresh token with a unique jti."""
    lifetime = expires_delta or parse_expiry(settings.jwt_refresh_expiry)
    return _encode(identity, settings.jwt_refresh_secret, lifetime, jti=str(uuid.uuid4()))


def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_access_secret, algorithms=[settings.jwt_algorithm])


def decode_refresh_token(token: str) -> dict:
    """Decode and verify a refresh token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_refresh_secret, algorithms=[settings.jwt_algorithm])


def verify_access_token(token: str) -> Optional[Identity]:
    """Return the identity carried by an access token, or None if it does not verify."""
    try:
        return Identity.from_payload(decode_access_token(token))
    except (jwt.PyJWTError, KeyError, ValueError):
        return None


def verify_refresh_token(token: str) -> Optional[Identity]:
    try:
        return Identity.from_payload(decode_refresh_token(token))
    except (jwt.PyJWTError, KeyError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Credential extraction
# ---------------------------------------------------------------------------

def extract_token(request: Request, *, allow_cookie: bool = True) -> Optional[str]:
    """Bearer header first, then the access cookie."""
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    if allow_cookie:
        return request.cookies.get(ACCESS_COOKIE)
    return None


def _resolve(request: Request, *, allow_cookie: bool) -> Optional[Identity]:
    token = extract_token(request, allow_cookie=allow_cookie)
    if not token:
        log.debug("auth.no_identity", reason="missing", path=request.url.path)
        return None
    identity = verify_access_token(token)
    if identity is None:
        log.debug("auth.no_identity", reason="invalid", path=request.url.path)
    return identity


async def get_identity(request: Request) -> Optional[Identity]:
    """Identity from header or cookie; None when absent or invalid."""
    return _resolve(request, allow_cookie=True)


async def get_bearer_identity(request: Request) -> Optional[Identity]:
    """Identity from the Authorization header only."""
    return _resolve(request, allow_cookie=False)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

async def require_user(
    identity: Optional[Identity] = Depends(get_identity),
) -> Identity:
    """Any authenticated user (header or cookie)."""
    if identity is None:
        raise HTTPException(status_code=401, detail=MSG_UNAUTHENTICATED)
    return identity


async def require_bearer_user(
    identity: Optional[Identity] = Depends(get_bearer_identity),
) -> Identity:
    """Any authenticated user presenting a bearer header."""
    if identity is None:
        raise HTTPException(status_code=401, detail=MSG_UNAUTHENTICATED)
    return identity


async def require_admin(
    identity: Optional[Identity] = Depends(get_identity),
) -> Identity:
    """Requires the ADMIN role. Missing, invalid and non-admin credentials look the same."""
    if identity is None or not identity.is_admin:
        if identity is not None:
            log.debug("auth.no_identity", reason="not_admin", user_id=str(identity.user_id))
        raise HTTPException(status_code=403, detail=MSG_FORBIDDEN)
    return identity


async def require_cron_secret(request: Request) -> None:
    """Gate scheduled endpoints behind CRON_SECRET when it is configured."""
    secret = get_settings().cron_secret
    if secret and request.headers.get("Authorization") != f"Bearer {secret}":
        log.warning("cron.rejected", path=request.url.path)
        raise HTTPException(status_code=401, detail=MSG_UNAUTHORIZED)
