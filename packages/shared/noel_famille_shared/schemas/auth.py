"""Authentication schemas (login by event code, session payloads)."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from .common import CamelModel, Role


def check_display_name(value: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise PydanticCustomError("name_too_short", "Le nom doit contenir au moins 2 caractères")
    if len(value) > 50:
        raise PydanticCustomError("name_too_long", "Le nom ne peut pas dépasser 50 caractères")
    return value


class LoginRequest(CamelModel):
    name: str
    event_code: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_display_name(value)

    @field_validator("event_code")
    @classmethod
    def _check_event_code(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 4:
            raise PydanticCustomError("code_too_short", "Le code doit contenir au moins 4 caractères")
        if len(value) > 30:
            raise PydanticCustomError("code_too_long", "Le code ne peut pas dépasser 30 caractères")
        return value.upper()


class UserProfile(CamelModel):
    """Read-only projection of a user exposed to clients."""
    id: UUID
    name: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    role: Role


class MeResponse(CamelModel):
    user: UserProfile


class AuthResponse(CamelModel):
    access_token: str
    user: UserProfile


class ProfileUpdateRequest(CamelModel):
    """Fields the caller may change on their own profile. An empty email clears it."""
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = Field(default=None, max_length=10)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return check_display_name(value)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if value == "":
            return value
        try:
            _, email = validate_email(value)
        except ValueError:
            raise PydanticCustomError("invalid_email", "Email invalide")
        return email
