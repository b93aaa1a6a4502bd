"""Poll schemas: creation, voting, results and closing."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import Field, StringConstraints, field_validator
from pydantic_core import PydanticCustomError

from .common import CamelModel, PollType, UserRef
from .contributions import ContributionResponse

OptionLabel = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class PollCreateRequest(CamelModel):
    title: str
    description: Optional[str] = Field(default=None, max_length=500)
    type: PollType = PollType.SINGLE
    event_id: UUID
    auto_close: Optional[datetime] = None
    options: List[OptionLabel] = Field(max_length=10)

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise PydanticCustomError("title_too_short", "Le titre doit contenir au moins 2 caractères")
        if len(value) > 200:
            raise PydanticCustomError("title_too_long", "Le titre ne peut pas dépasser 200 caractères")
        return value

    @field_validator("options")
    @classmethod
    def _check_options(cls, value: List[str]) -> List[str]:
        if len(value) < 2:
            raise PydanticCustomError("too_few_options", "Au moins 2 options sont requises")
        return value


class VoteRequest(CamelModel):
    option_ids: List[UUID]

    @field_validator("option_ids")
    @classmethod
    def _check_option_ids(cls, value: List[UUID]) -> List[UUID]:
        if not value:
            raise PydanticCustomError("no_option", "Au moins une option est requise")
        return list(dict.fromkeys(value))


class PollOptionView(CamelModel):
    id: UUID
    label: str
    vote_count: int
    voters: List[UserRef] = []


class PollView(CamelModel):
    """A poll as seen by one participant: tallies, voters and their own choices."""
    id: UUID
    event_id: UUID
    title: str
    description: Optional[str] = None
    type: PollType
    is_closed: bool
    auto_close: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_by_id: Optional[UUID] = None
    created_by: Optional[UserRef] = None
    options: List[PollOptionView]
    has_voted: bool = False
    user_votes: List[UUID] = []


class PollEnvelope(CamelModel):
    poll: PollView


class ClosedPollRef(CamelModel):
    id: UUID
    title: str
    event_id: UUID


class AutoCloseResponse(CamelModel):
    success: bool = True
    closed: int
    polls: List[ClosedPollRef]


class PollOptionResult(CamelModel):
    id: UUID
    label: str
    vote_count: int


class ClosedPollDetail(CamelModel):
    id: UUID
    event_id: UUID
    title: str
    description: Optional[str] = None
    type: PollType
    is_closed: bool
    auto_close: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    options: List[PollOptionResult]


class PollCloseResponse(CamelModel):
    poll: ClosedPollDetail
    created_contributions: List[ContributionResponse]
    message: str
