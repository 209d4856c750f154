"""
SubT competition collaborator interfaces: registrations and participants
(`SubTService`) and submitted log files (`LogFileService`).
"""

from __future__ import annotations

from typing import Protocol

from starlette.datastructures import UploadFile

from auth.schemas import User
from core.db import Transaction
from core.pagination import PaginationRequest, PaginationResult

from .schemas import (
    LeaderboardEntry,
    LogFile,
    LogSubmission,
    Participant,
    RegStatus,
    Registration,
    SubmissionStatus,
    UpdateLogFile,
)


class SubTService(Protocol):
    async def leaderboard(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        competition: str,
        circuit: str | None,
        owner: str | None,
    ) -> tuple[list[LeaderboardEntry], PaginationResult]: ...

    async def registrations(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        competition: str,
        status: RegStatus,
        user: User,
    ) -> tuple[list[Registration], PaginationResult]: ...

    async def apply(self, tx: Transaction, competition: str, participant: str, user: User) -> Registration: ...

    async def resolve_registration(
        self, tx: Transaction, competition: str, participant: str, resolution: RegStatus, user: User
    ) -> Registration: ...

    async def delete_registration(
        self, tx: Transaction, competition: str, participant: str, user: User
    ) -> Registration: ...

    async def participants(
        self, tx: Transaction, pagination: PaginationRequest, competition: str, user: User
    ) -> tuple[list[Participant], PaginationResult]: ...

    async def delete_participant(
        self, tx: Transaction, competition: str, participant: str, user: User
    ) -> Participant: ...


class LogFileService(Protocol):
    async def create_log(
        self,
        tx: Transaction,
        upload: UploadFile,
        competition: str,
        payload: LogSubmission,
        user: User,
    ) -> LogFile:
        """
        Store the uploaded log. `upload` is closed once the handler returns.
        """
        ...

    async def log_list(
        self,
        tx: Transaction,
        pagination: PaginationRequest,
        competition: str,
        owner: str | None,
        status: SubmissionStatus,
        user: User,
    ) -> tuple[list[LogFile], PaginationResult]: ...

    async def get_log(self, tx: Transaction, competition: str, log_id: int, user: User) -> LogFile: ...

    async def update_log(
        self, tx: Transaction, competition: str, log_id: int, payload: UpdateLogFile, user: User
    ) -> LogFile: ...

    async def remove_log(self, tx: Transaction, competition: str, log_id: int, user: User) -> LogFile: ...

    async def download_url(self, tx: Transaction, competition: str, log_id: int, user: User) -> str:
        """
        Return a short-lived URL to the stored log file.
        """
        ...
