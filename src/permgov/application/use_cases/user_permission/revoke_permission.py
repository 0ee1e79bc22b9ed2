"""Revoke user permission use case."""

import logging
from uuid import UUID

from permgov.application.cache_keys import invalidate_user
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.application.use_cases.user_permission.update_permission import load_user_permission
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class RevokeUserPermissionUseCase:
    """Delete a direct user entry (grant or deny)."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        user_id: str,
        permission_id: UUID,
        performed_by: str,
        reason: str | None = None,
    ) -> None:
        """Revoke entry. NotFound if the user has none for permission_id."""
        async with self._uow_factory() as uow:
            grant = await load_user_permission(uow, user_id, permission_id)
            await uow.user_permissions.delete(grant.id)
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                str(grant.id),
                ChangeOperation.REVOKE,
                snapshot(grant),
                None,
                performed_by,
                {"reason": reason},
            )

        await invalidate_user(self._cache, user_id)
        logger.info("Revoked permission %s from user %s by %s", permission_id, user_id, performed_by)
