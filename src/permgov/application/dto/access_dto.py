"""Access check DTOs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permgov.domain.value_objects import Conditions, PermissionSource


@dataclass(frozen=True)
class PermissionResult:
    """Answer to "may principal do action on resource".

    conditions are handed back to the caller unevaluated.
    """

    has_permission: bool
    reason: str
    source: PermissionSource | None = None
    permission_id: UUID | None = None
    code: str | None = None
    role_name: str | None = None
    valid_until: datetime | None = None
    conditions: Conditions | None = None
