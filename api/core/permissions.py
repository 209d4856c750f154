"""
Interface to the access-control engine.

The engine itself (policy storage, role hierarchy) lives outside this API.
Handlers only ask it questions and record grants on transfer.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class Action(str, Enum):
    READ = "read"
    WRITE = "write"


class PermissionsError(RuntimeError):
    pass


class Permissions(Protocol):
    def is_system_admin(self, username: str) -> bool: ...

    def is_authorized(self, subject: str, resource: str, action: Action) -> bool: ...

    def add_permission(self, subject: str, resource: str, action: Action) -> None:
        """Grant `action` on `resource`. Raises PermissionsError on failure."""
        ...

    def remove_permission(self, subject: str, resource: str, action: Action) -> None:
        """Revoke `action` on `resource`. Raises PermissionsError on failure."""
        ...
