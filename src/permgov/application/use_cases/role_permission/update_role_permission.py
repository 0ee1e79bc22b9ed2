"""Update role permission use case."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from permgov.application.cache_keys import invalidate_users
from permgov.application.dto.role_dto import UpdateRolePermissionInput
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.application.use_cases.role_permission.assign_role_permission import (
    load_role_permission,
)
from permgov.domain.entities import RolePermission
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType, ValidityWindow

logger = logging.getLogger(__name__)


class UpdateRolePermissionUseCase:
    """Modify a role permission link in place."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        role_id: UUID,
        permission_id: UUID,
        data: UpdateRolePermissionInput,
        performed_by: str,
    ) -> RolePermission:
        async with self._uow_factory() as uow:
            link = await load_role_permission(uow, role_id, permission_id)
            previous = snapshot(link)

            valid_from = data.valid_from if data.valid_from is not None else link.valid_from
            if data.clear_valid_until:
                valid_until = None
            elif data.valid_until is not None:
                valid_until = data.valid_until
            else:
                valid_until = link.valid_until
            ValidityWindow(valid_from, valid_until)

            if data.is_granted is not None:
                link.is_granted = data.is_granted
            if data.conditions is not None:
                link.conditions = data.conditions
            link.valid_from = valid_from
            link.valid_until = valid_until
            link.updated_at = datetime.now(UTC)

            await uow.role_permissions.update(link)
            await record_change(
                uow,
                HistoryEntityType.ROLE_PERMISSION,
                str(link.id),
                ChangeOperation.UPDATE,
                previous,
                snapshot(link),
                performed_by,
            )
            holders = await uow.user_roles.list_user_ids_by_role(role_id)

        await invalidate_users(self._cache, holders)
        logger.info("Updated permission %s on role %s by %s", permission_id, role_id, performed_by)
        return link
