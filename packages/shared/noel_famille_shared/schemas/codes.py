"""Join code schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel


class CodeCreateRequest(CamelModel):
    code: str
    event_ids: List[UUID]
    is_master: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        value = value.strip()
        if not 4 <= len(value) <= 30:
            raise PydanticCustomError(
                "code_length", "Le code doit contenir entre 4 et 30 caractères"
            )
        return value.upper()

    @field_validator("event_ids")
    @classmethod
    def _check_event_ids(cls, value: List[UUID]) -> List[UUID]:
        if not value:
            raise PydanticCustomError("no_events", "Sélectionnez au moins un événement")
        return list(dict.fromkeys(value))


class CodeEventRef(CamelModel):
    id: UUID
    name: str


class CodeResponse(CamelModel):
    id: UUID
    code: str
    is_active: bool
    is_master: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    events: List[CodeEventRef] = []


class CodeListResponse(CamelModel):
    codes: List[CodeResponse]


class CodeCreateResponse(CamelModel):
    code: CodeResponse
