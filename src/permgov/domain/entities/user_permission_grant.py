"""UserPermissionGrant entity - direct grant or explicit deny for a user."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permgov.domain.value_objects import Conditions, window_contains

DEFAULT_PRIORITY = 100


@dataclass
class UserPermissionGrant:
    """Direct user permission. is_granted=False is an explicit deny.

    (user_id, permission_id) is unique in storage. Temporary grants always
    carry valid_until.
    """

    id: UUID
    user_id: str
    permission_id: UUID
    created_at: datetime
    updated_at: datetime
    is_granted: bool = True
    priority: int = DEFAULT_PRIORITY
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_temporary: bool = False
    conditions: Conditions | None = None
    granted_by: str | None = None
    grant_reason: str | None = None

    def is_in_force(self, now: datetime) -> bool:
        return window_contains(self.valid_from, self.valid_until, now)
