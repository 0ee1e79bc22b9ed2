"""RolePermission entity - permission granted through a role."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permgov.domain.value_objects import Conditions, window_contains


@dataclass
class RolePermission:
    """Role to permission link with an optional validity window."""

    id: UUID
    role_id: UUID
    permission_id: UUID
    created_at: datetime
    updated_at: datetime
    is_granted: bool = True
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    conditions: Conditions | None = None
    granted_by: str | None = None
    grant_reason: str | None = None

    def is_in_force(self, now: datetime) -> bool:
        return window_contains(self.valid_from, self.valid_until, now)
