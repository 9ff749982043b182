from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import Annotated, Any, Generic, Literal, TypeVar, Union
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ContestStatus = Literal["upcoming", "active", "completed"]

T = TypeVar("T")

class CamelModel(BaseModel):
    # wire format is camelCase (startDate, relevancyScore, ...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

def _utc(v: datetime | None) -> datetime | None:
    if v is None or v.tzinfo is not None:
        return v
    return v.replace(tzinfo=dt_tz.utc)

# ---------- requests ----------

class ContestCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    theme: str = Field(min_length=1, max_length=200)
    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date")
    @classmethod
    def aware(cls, v: datetime | None):
        return _utc(v)

class ContestUpdate(CamelModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    theme: str | None = Field(default=None, max_length=200)
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def aware(cls, v: datetime | None):
        return _utc(v)

class SubmitRequest(CamelModel):
    post_id: str | None = None

class VoteRequest(CamelModel):
    entry_id: str | None = None
    # range/type checked by the service so bad scores get the contest error message
    score: Any = None

# ---------- post references ----------

class PostReference(CamelModel):
    kind: Literal["reference"] = "reference"
    id: UUID

class PostExpanded(CamelModel):
    kind: Literal["expanded"] = "expanded"
    id: UUID
    name: str
    prompt: str
    photo: str

PostRef = Annotated[Union[PostReference, PostExpanded], Field(discriminator="kind")]

# ---------- responses ----------

class VotePublic(CamelModel):
    user_id: str
    score: int

class EntryPublic(CamelModel):
    id: UUID
    user_id: str
    username: str
    post_id: PostRef
    relevancy_score: float
    voters: list[VotePublic]
    submitted_at: datetime

class WinnerPublic(CamelModel):
    rank: int
    user_id: str
    username: str
    post_id: PostRef
    relevancy_score: float

class ContestPublic(CamelModel):
    id: UUID
    title: str
    description: str
    theme: str
    start_date: datetime
    end_date: datetime
    status: ContestStatus
    entries: list[EntryPublic]
    winners: list[WinnerPublic]
    created_at: datetime
    updated_at: datetime

class VoteReceipt(CamelModel):
    entry_id: UUID
    new_score: float

class UserEntry(CamelModel):
    contest_id: UUID
    contest_title: str
    contest_theme: str
    contest_status: ContestStatus
    entry: EntryPublic

class LeaderboardRow(CamelModel):
    rank: int
    user_id: str
    username: str
    post_id: PostRef
    relevancy_score: float
    voter_count: int

class Leaderboard(CamelModel):
    contest_id: UUID
    contest_title: str
    contest_status: ContestStatus
    leaderboard: list[LeaderboardRow]

class StatusChangePublic(CamelModel):
    id: UUID
    title: str
    previous_status: ContestStatus
    new_status: ContestStatus

class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str | None = None
    data: T
