"""Effective permission set - derived, never persisted."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from permgov.domain.value_objects import Conditions, PermissionSource


@dataclass(frozen=True)
class EffectivePermission:
    """Decisive entry for one permission after merging user and role sources."""

    permission_id: UUID
    code: str
    resource: str
    action: str
    source: PermissionSource
    is_granted: bool
    scope: str | None = None
    priority: int | None = None
    role_id: UUID | None = None
    role_name: str | None = None
    valid_until: datetime | None = None
    is_temporary: bool = False
    conditions: Conditions | None = None


@dataclass(frozen=True)
class PermissionSources:
    """How many entries each source contributed."""

    direct_user: int = 0
    from_roles: int = 0


@dataclass(frozen=True)
class EffectivePermissionSet:
    """Granted permissions plus explicit denials kept for explanation."""

    user_id: str
    permissions: dict[UUID, EffectivePermission]
    denied: dict[UUID, EffectivePermission]
    computed_at: datetime
    sources: PermissionSources = field(default_factory=PermissionSources)

    @property
    def total_permissions(self) -> int:
        return len(self.permissions)

    @property
    def denied_count(self) -> int:
        return len(self.denied)

    def grants(self, permission_id: UUID) -> bool:
        return permission_id in self.permissions

    def find_by_code(self, code: str) -> EffectivePermission | None:
        for perm in self.permissions.values():
            if perm.code == code:
                return perm
        return None
