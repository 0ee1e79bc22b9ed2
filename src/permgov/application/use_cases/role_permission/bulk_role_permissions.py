"""Atomic bulk link / unlink of role permissions."""

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

from permgov.application.cache_keys import invalidate_users
from permgov.application.dto.grant_dto import BulkRemoveInput, BulkRemoveResult
from permgov.application.dto.role_dto import BulkRolePermissionInput, BulkRolePermissionResult
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.catalog.permission_catalog import (
    load_active_permission,
    load_active_role,
)
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import RolePermission
from permgov.domain.exceptions import InvalidInput, NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class BulkAssignRolePermissionsUseCase:
    """Link several permissions to a role in one transaction. Existing links are skipped."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        role_id: UUID,
        data: BulkRolePermissionInput,
        granted_by: str,
    ) -> BulkRolePermissionResult:
        async with self._uow_factory() as uow:
            role = await load_active_role(uow, role_id)

            now = datetime.now(UTC)
            links: list[RolePermission] = []
            skipped = []
            for permission_id in dict.fromkeys(data.permission_ids):
                permission = await load_active_permission(uow, permission_id)
                if await uow.role_permissions.get(role.id, permission.id):
                    skipped.append(permission.id)
                    continue
                links.append(
                    RolePermission(
                        id=uuid4(),
                        role_id=role.id,
                        permission_id=permission.id,
                        created_at=now,
                        updated_at=now,
                        valid_from=data.valid_from,
                        valid_until=data.valid_until,
                        conditions=data.conditions,
                        granted_by=granted_by,
                        grant_reason=data.grant_reason,
                    )
                )
            if not links:
                raise InvalidInput(f"All permissions are already assigned to role {role.name}")

            await uow.role_permissions.create_batch(links)
            items = [snapshot(link) for link in links]
            await record_change(
                uow,
                HistoryEntityType.ROLE_PERMISSION,
                str(role.id),
                ChangeOperation.BULK_ASSIGN,
                None,
                {"role_id": str(role.id), "items": items, "count": len(items)},
                granted_by,
                {"reason": data.grant_reason, "skipped": [str(pid) for pid in skipped]},
            )
            holders = await uow.user_roles.list_user_ids_by_role(role.id)

        await invalidate_users(self._cache, holders)
        logger.info(
            "Bulk assigned %d permissions to role %s (%d skipped)",
            len(links),
            role.name,
            len(skipped),
        )
        return BulkRolePermissionResult(assigned=links, skipped=skipped)


class BulkRemoveRolePermissionsUseCase:
    """Unlink several permissions from a role in one transaction."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        role_id: UUID,
        data: BulkRemoveInput,
        performed_by: str,
    ) -> BulkRemoveResult:
        requested = list(dict.fromkeys(data.permission_ids))
        async with self._uow_factory() as uow:
            role = await uow.roles.get_by_id(role_id)
            if not role:
                raise NotFound("Role", str(role_id))

            found = []
            for permission_id in requested:
                link = await uow.role_permissions.get(role.id, permission_id)
                if link:
                    found.append(link)
            if not found:
                raise InvalidInput(f"No matching permissions found for role {role.name}")

            for link in found:
                await uow.role_permissions.delete(link.id)
            items = [snapshot(link) for link in found]
            await record_change(
                uow,
                HistoryEntityType.ROLE_PERMISSION,
                str(role.id),
                ChangeOperation.BULK_REMOVE,
                {"role_id": str(role.id), "items": items, "count": len(items)},
                None,
                performed_by,
                {"reason": data.reason},
            )
            holders = await uow.user_roles.list_user_ids_by_role(role.id)

        await invalidate_users(self._cache, holders)
        logger.info("Bulk removed %d permissions from role %s", len(found), role.name)
        return BulkRemoveResult(removed=len(found), not_found=len(requested) - len(found))
