"""Repository ports."""

from permgov.application.ports.repositories.change_history_repository import (
    ChangeHistoryRepository,
)
from permgov.application.ports.repositories.permission_repository import (
    PermissionRepository,
)
from permgov.application.ports.repositories.role_permission_repository import (
    RolePermissionRepository,
)
from permgov.application.ports.repositories.role_repository import RoleRepository
from permgov.application.ports.repositories.user_permission_repository import (
    UserPermissionRepository,
)
from permgov.application.ports.repositories.user_repository import UserRepository
from permgov.application.ports.repositories.user_role_repository import (
    UserRoleRepository,
)

__all__ = [
    "ChangeHistoryRepository",
    "PermissionRepository",
    "RolePermissionRepository",
    "RoleRepository",
    "UserPermissionRepository",
    "UserRepository",
    "UserRoleRepository",
]
