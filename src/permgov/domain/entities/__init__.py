"""Domain entities."""

from permgov.domain.entities.change_history_entry import ChangeHistoryEntry
from permgov.domain.entities.effective_permission import (
    EffectivePermission,
    EffectivePermissionSet,
    PermissionSources,
)
from permgov.domain.entities.permission import Permission
from permgov.domain.entities.role import Role
from permgov.domain.entities.role_permission import RolePermission
from permgov.domain.entities.user_permission_grant import (
    DEFAULT_PRIORITY,
    UserPermissionGrant,
)
from permgov.domain.entities.user_role_assignment import UserRoleAssignment

__all__ = [
    "DEFAULT_PRIORITY",
    "ChangeHistoryEntry",
    "EffectivePermission",
    "EffectivePermissionSet",
    "Permission",
    "PermissionSources",
    "Role",
    "RolePermission",
    "UserPermissionGrant",
    "UserRoleAssignment",
]
