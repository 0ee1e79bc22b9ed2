"""Bulk operation DTOs."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar
from uuid import UUID

from permgov.domain.exceptions import InvalidInput

T = TypeVar("T")


@dataclass
class BulkUserRoleAssignment:
    """One role applied to many users."""

    user_ids: list[str]
    role_id: UUID

    def __post_init__(self) -> None:
        if not isinstance(self.role_id, UUID):
            raise InvalidInput(f"Invalid role id: {self.role_id!r}")
        if not self.user_ids:
            raise InvalidInput("user_ids must not be empty")
        for user_id in self.user_ids:
            if not isinstance(user_id, str):
                raise InvalidInput(f"Invalid user id: {user_id!r}")


@dataclass
class BulkRolePermissionAssignment:
    """Many permissions applied to one role."""

    role_id: UUID
    permission_ids: list[UUID]

    def __post_init__(self) -> None:
        if not isinstance(self.role_id, UUID):
            raise InvalidInput(f"Invalid role id: {self.role_id!r}")
        if not self.permission_ids:
            raise InvalidInput("permission_ids must not be empty")
        for pid in self.permission_ids:
            if not isinstance(pid, UUID):
                raise InvalidInput(f"Invalid permission id: {pid!r}")


@dataclass
class BulkFailure:
    """Item that failed, with the error message."""

    item: dict[str, Any]
    error: str


@dataclass
class BulkSummary:
    total: int
    succeeded: int
    failed: int
    duration_ms: int


@dataclass
class BulkOperationResult(Generic[T]):
    """Per-item outcome of a bulk operation, in input order."""

    successful: list[T] = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)
    summary: BulkSummary = field(default_factory=lambda: BulkSummary(0, 0, 0, 0))
