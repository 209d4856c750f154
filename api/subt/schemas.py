"""
Pydantic schemas and constants for the SubT competition endpoints.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, Field

from core.validators import ParticipantName

COMPETITION = "subt"


class RegStatus(IntEnum):
    PENDING = 0
    DONE = 1
    REJECTED = 2


class SubmissionStatus(IntEnum):
    FOR_REVIEW = 0
    DONE = 1
    REJECTED = 2


class Participant(BaseModel):
    owner: str
    competition: str
    private: bool | None = None
    created_at: datetime | None = None


class LeaderboardEntry(Participant):
    score: float | None = None
    circuit: str | None = None


class Registration(BaseModel):
    competition: str
    participant: str
    creator: str | None = None
    status: int
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class CreateRegistration(BaseModel):
    participant: ParticipantName = Field(..., min_length=1)


class ResolveRegistration(BaseModel):
    resolution: int = Field(..., ge=1, le=2)


class LogFile(BaseModel):
    id: int
    owner: str | None = None
    creator: str | None = None
    private: bool | None = None
    competition: str | None = None
    status: int = 0
    score: float | None = None
    comments: str | None = None
    location: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    resolved_at: datetime | None = None


class LogSubmission(BaseModel):
    owner: str = Field(..., min_length=1)
    description: str = ""
    private: bool | None = None


class UpdateLogFile(BaseModel):
    status: int = Field(default=0, ge=0, le=2)
    score: float = 0.0
    comments: str | None = None
