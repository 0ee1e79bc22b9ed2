"""Role permission repository port."""

from typing import Protocol
from uuid import UUID

from permgov.domain.entities import RolePermission


class RolePermissionRepository(Protocol):
    """Port for role to permission links."""

    async def get_by_id(self, role_permission_id: UUID) -> RolePermission | None: ...

    async def get(self, role_id: UUID, permission_id: UUID) -> RolePermission | None: ...

    async def list_by_role(self, role_id: UUID) -> list[RolePermission]: ...

    async def list_by_roles(self, role_ids: list[UUID]) -> list[RolePermission]: ...

    async def create(self, role_permission: RolePermission) -> RolePermission: ...

    async def create_batch(self, role_permissions: list[RolePermission]) -> list[RolePermission]: ...

    async def update(self, role_permission: RolePermission) -> None: ...

    async def delete(self, role_permission_id: UUID) -> None: ...
