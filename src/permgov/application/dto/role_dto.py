"""Role assignment and role permission DTOs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permgov.domain.entities import RolePermission
from permgov.domain.exceptions import InvalidInput
from permgov.domain.value_objects import Conditions, ValidityWindow


@dataclass
class AssignRoleInput:
    """Input for assigning (or re-assigning) a role to a user."""

    role_id: UUID
    is_active: bool = True
    effective_from: datetime | None = None
    effective_until: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.role_id, UUID):
            raise InvalidInput(f"Invalid role id: {self.role_id!r}")
        ValidityWindow(self.effective_from, self.effective_until)


@dataclass
class RolePermissionInput:
    """Input for linking a permission to a role."""

    permission_id: UUID
    is_granted: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    conditions: Conditions | None = None
    grant_reason: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.permission_id, UUID):
            raise InvalidInput(f"Invalid permission id: {self.permission_id!r}")
        ValidityWindow(self.valid_from, self.valid_until)


@dataclass
class UpdateRolePermissionInput:
    """Partial update of a role permission link."""

    is_granted: bool | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    clear_valid_until: bool = False
    conditions: Conditions | None = None

    def __post_init__(self) -> None:
        if self.clear_valid_until and self.valid_until is not None:
            raise InvalidInput("valid_until and clear_valid_until are exclusive")


@dataclass
class BulkRolePermissionResult:
    """Outcome of an atomic bulk role permission assignment."""

    assigned: list[RolePermission]
    skipped: list[UUID]


@dataclass
class BulkRolePermissionInput:
    """Atomic link of several permissions to one role."""

    permission_ids: list[UUID]
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    conditions: Conditions | None = None
    grant_reason: str | None = None

    def __post_init__(self) -> None:
        if not self.permission_ids:
            raise InvalidInput("permission_ids must not be empty")
        for pid in self.permission_ids:
            if not isinstance(pid, UUID):
                raise InvalidInput(f"Invalid permission id: {pid!r}")
        ValidityWindow(self.valid_from, self.valid_until)
