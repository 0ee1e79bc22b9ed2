"""Direct user grant DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from permgov.domain.entities import UserPermissionGrant
from permgov.domain.exceptions import InvalidInput
from permgov.domain.value_objects import Conditions, ValidityWindow


def _check_temporal(
    valid_from: datetime | None,
    valid_until: datetime | None,
    is_temporary: bool,
) -> None:
    if is_temporary and valid_until is None:
        raise InvalidInput("Temporary permissions must have valid_until")
    ValidityWindow(valid_from, valid_until)


def _check_priority(priority: int | None) -> None:
    if priority is not None and (not isinstance(priority, int) or isinstance(priority, bool)):
        raise InvalidInput("priority must be an integer")


def _check_permission_ids(permission_ids: list[UUID]) -> None:
    if not permission_ids:
        raise InvalidInput("permission_ids must not be empty")
    for pid in permission_ids:
        if not isinstance(pid, UUID):
            raise InvalidInput(f"Invalid permission id: {pid!r}")


@dataclass
class GrantPermissionInput:
    """Input for a direct grant (is_granted=True) or explicit deny (False)."""

    permission_id: UUID
    is_granted: bool = True
    priority: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_temporary: bool = False
    conditions: Conditions | None = None
    grant_reason: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.permission_id, UUID):
            raise InvalidInput(f"Invalid permission id: {self.permission_id!r}")
        _check_priority(self.priority)
        _check_temporal(self.valid_from, self.valid_until, self.is_temporary)


@dataclass
class UpdatePermissionInput:
    """Partial update of a direct grant. None leaves a field unchanged.

    Set clear_valid_until to drop the end of the window.
    """

    is_granted: bool | None = None
    priority: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    clear_valid_until: bool = False
    conditions: Conditions | None = None

    def __post_init__(self) -> None:
        if self.clear_valid_until and self.valid_until is not None:
            raise InvalidInput("valid_until and clear_valid_until are exclusive")
        _check_priority(self.priority)


@dataclass
class UpdatePriorityInput:
    """New priority for a direct grant."""

    priority: int
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.priority is None:
            raise InvalidInput("priority must be an integer")
        _check_priority(self.priority)


@dataclass
class BulkGrantInput:
    """Atomic grant of several permissions to one user."""

    permission_ids: list[UUID]
    is_granted: bool = True
    priority: int | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_temporary: bool = False
    conditions: Conditions | None = None
    grant_reason: str | None = None

    def __post_init__(self) -> None:
        _check_permission_ids(self.permission_ids)
        _check_priority(self.priority)
        _check_temporal(self.valid_from, self.valid_until, self.is_temporary)


@dataclass
class BulkRemoveInput:
    """Atomic removal of several permissions from one user or role."""

    permission_ids: list[UUID]
    reason: str | None = None

    def __post_init__(self) -> None:
        _check_permission_ids(self.permission_ids)


@dataclass
class UserPermissionFilters:
    """Filters for listing a user's direct grants."""

    is_granted: bool | None = None
    is_temporary: bool | None = None
    active_only: bool = False
    page: int = 1
    limit: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise InvalidInput("page must be >= 1")
        if not 1 <= self.limit <= 100:
            raise InvalidInput("limit must be between 1 and 100")

    def cache_fragment(self) -> str:
        """Stable string form used inside list cache keys."""
        return (
            f"g={self.is_granted}&t={self.is_temporary}&a={self.active_only}"
            f"&p={self.page}&l={self.limit}"
        )


@dataclass
class UserPermissionPage:
    """Page of direct grants ordered by priority then creation time."""

    items: list[UserPermissionGrant]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit


@dataclass
class TemporaryPermissions:
    """In-force temporary grants, soonest expiry first."""

    user_id: str
    temporary: list[UserPermissionGrant] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.temporary)


@dataclass
class BulkGrantResult:
    """Outcome of an atomic bulk grant."""

    assigned: list[UserPermissionGrant]
    skipped: list[UUID]


@dataclass
class BulkRemoveResult:
    """Outcome of an atomic bulk removal."""

    removed: int
    not_found: int
