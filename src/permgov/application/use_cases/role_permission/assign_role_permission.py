"""Assign role permission use case."""

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

from permgov.application.cache_keys import invalidate_users
from permgov.application.dto.role_dto import RolePermissionInput
from permgov.application.ports import PermissionCache, UnitOfWork
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.catalog.permission_catalog import (
    load_active_permission,
    load_active_role,
)
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import RolePermission
from permgov.domain.exceptions import Conflict, NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


async def load_role_permission(
    uow: UnitOfWork, role_id: UUID, permission_id: UUID
) -> RolePermission:
    link = await uow.role_permissions.get(role_id, permission_id)
    if not link:
        raise NotFound("Role permission", f"{role_id}/{permission_id}")
    return link


class AssignRolePermissionUseCase:
    """Link a permission to a role. Every holder of the role is invalidated."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        role_id: UUID,
        data: RolePermissionInput,
        granted_by: str,
    ) -> RolePermission:
        async with self._uow_factory() as uow:
            role = await load_active_role(uow, role_id)
            permission = await load_active_permission(uow, data.permission_id)
            if await uow.role_permissions.get(role.id, permission.id):
                raise Conflict(f"Role {role.name} already has permission {permission.code}")

            now = datetime.now(UTC)
            link = RolePermission(
                id=uuid4(),
                role_id=role.id,
                permission_id=permission.id,
                created_at=now,
                updated_at=now,
                is_granted=data.is_granted,
                valid_from=data.valid_from,
                valid_until=data.valid_until,
                conditions=data.conditions,
                granted_by=granted_by,
                grant_reason=data.grant_reason,
            )
            await uow.role_permissions.create(link)
            await record_change(
                uow,
                HistoryEntityType.ROLE_PERMISSION,
                str(link.id),
                ChangeOperation.ASSIGN,
                None,
                snapshot(link),
                granted_by,
                {"reason": data.grant_reason, "permission_code": permission.code},
            )
            holders = await uow.user_roles.list_user_ids_by_role(role.id)

        await invalidate_users(self._cache, holders)
        logger.info("Assigned permission %s to role %s by %s", permission.code, role.name, granted_by)
        return link
