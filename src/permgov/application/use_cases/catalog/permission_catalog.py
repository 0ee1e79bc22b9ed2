"""Permission catalog - read-only registry of permissions and roles."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from permgov.application.ports import UnitOfWork
from permgov.application.snapshots import snapshot
from permgov.domain.entities import Permission, Role
from permgov.domain.exceptions import InvalidInput, NotFound


async def load_active_permission(uow: UnitOfWork, permission_id: UUID) -> Permission:
    """Fetch a permission that may be granted. NotFound / InvalidInput otherwise."""
    permission = await uow.permissions.get_by_id(permission_id)
    if not permission:
        raise NotFound("Permission", str(permission_id))
    if not permission.is_active:
        raise InvalidInput(f"Permission {permission.code} is inactive")
    return permission


async def load_active_role(uow: UnitOfWork, role_id: UUID) -> Role:
    """Fetch a role that may be assigned. NotFound / InvalidInput otherwise."""
    role = await uow.roles.get_by_id(role_id)
    if not role:
        raise NotFound("Role", str(role_id))
    if not role.is_active:
        raise InvalidInput(f"Role {role.name} is inactive")
    return role


async def require_user(uow: UnitOfWork, user_id: str) -> None:
    if not await uow.users.exists(user_id):
        raise NotFound("User", user_id)


class PermissionCatalog:
    """Lookups over the permission and role catalog. Never writes."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def get(self, permission_id: UUID) -> Permission:
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get_by_id(permission_id)
        if not permission:
            raise NotFound("Permission", str(permission_id))
        return permission

    async def get_by_code(self, code: str) -> Permission:
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get_by_code(code)
        if not permission:
            raise NotFound("Permission", code)
        return permission

    async def list_permissions(
        self,
        *,
        resource: str | None = None,
        action: str | None = None,
        include_inactive: bool = False,
    ) -> list[Permission]:
        async with self._uow_factory() as uow:
            return await uow.permissions.list(
                resource=resource, action=action, include_inactive=include_inactive
            )

    async def find(
        self, resource: str, action: str, scope: str | None = None
    ) -> list[Permission]:
        """Active permissions for resource/action. scope=None matches any scope."""
        permissions = await self.list_permissions(resource=resource, action=action)
        return [p for p in permissions if scope is None or p.scope == scope]

    async def get_role(self, role_id: UUID) -> Role:
        async with self._uow_factory() as uow:
            role = await uow.roles.get_by_id(role_id)
        if not role:
            raise NotFound("Role", str(role_id))
        return role

    async def list_roles(self, include_inactive: bool = False) -> list[Role]:
        """Roles ordered by hierarchy level, highest first."""
        async with self._uow_factory() as uow:
            roles = await uow.roles.list_all(include_inactive=include_inactive)
        return sorted(roles, key=lambda r: (-r.hierarchy_level, r.name))

    async def export(self) -> dict[str, Any]:
        """Active permissions, roles and their links, for backup or review."""
        async with self._uow_factory() as uow:
            permissions = await uow.permissions.list()
            roles = await uow.roles.list_all()
            links = await uow.role_permissions.list_by_roles([r.id for r in roles])
        active_ids = {p.id for p in permissions}
        return {
            "permissions": [
                {
                    "id": str(p.id),
                    "code": p.code,
                    "name": p.name,
                    "resource": p.resource,
                    "action": p.action,
                    "scope": p.scope,
                    "is_system_permission": p.is_system_permission,
                }
                for p in sorted(permissions, key=lambda p: (p.resource, p.action))
            ],
            "roles": [
                {
                    "id": str(r.id),
                    "code": r.code,
                    "name": r.name,
                    "hierarchy_level": r.hierarchy_level,
                    "is_system_role": r.is_system_role,
                }
                for r in sorted(roles, key=lambda r: r.hierarchy_level)
            ],
            "role_permissions": [
                snapshot(link) for link in links if link.permission_id in active_ids
            ],
            "exported_at": datetime.now(UTC).isoformat(),
        }
