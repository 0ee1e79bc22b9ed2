"""UserRoleAssignment entity - user holds a role."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permgov.domain.value_objects import window_contains


@dataclass
class UserRoleAssignment:
    """Assignment of role to user. (user_id, role_id) is unique."""

    id: UUID
    user_id: str
    role_id: UUID
    assigned_at: datetime
    updated_at: datetime
    is_active: bool = True
    effective_from: datetime | None = None
    effective_until: datetime | None = None
    assigned_by: str | None = None

    def is_in_force(self, now: datetime) -> bool:
        """Active and inside [effective_from, effective_until)."""
        return self.is_active and window_contains(
            self.effective_from, self.effective_until, now
        )
