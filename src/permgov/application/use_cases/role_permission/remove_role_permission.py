"""Remove role permission use case."""

import logging
from uuid import UUID

from permgov.application.cache_keys import invalidate_users
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.application.use_cases.role_permission.assign_role_permission import (
    load_role_permission,
)
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class RemoveRolePermissionUseCase:
    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        role_id: UUID,
        permission_id: UUID,
        performed_by: str,
        reason: str | None = None,
    ) -> None:
        """Unlink permission from role. NotFound if not linked."""
        async with self._uow_factory() as uow:
            link = await load_role_permission(uow, role_id, permission_id)
            await uow.role_permissions.delete(link.id)
            await record_change(
                uow,
                HistoryEntityType.ROLE_PERMISSION,
                str(link.id),
                ChangeOperation.REVOKE,
                snapshot(link),
                None,
                performed_by,
                {"reason": reason},
            )
            holders = await uow.user_roles.list_user_ids_by_role(role_id)

        await invalidate_users(self._cache, holders)
        logger.info("Removed permission %s from role %s by %s", permission_id, role_id, performed_by)
