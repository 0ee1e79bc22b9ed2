"""Revoke role use case."""

import logging
from uuid import UUID

from permgov.application.cache_keys import invalidate_user
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.exceptions import NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class RevokeRoleUseCase:
    """Remove a role assignment from a user."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        user_id: str,
        role_id: UUID,
        performed_by: str,
        reason: str | None = None,
    ) -> None:
        async with self._uow_factory() as uow:
            assignment = await uow.user_roles.get(user_id, role_id)
            if not assignment:
                raise NotFound("Role assignment", f"{user_id}/{role_id}")
            await uow.user_roles.delete(assignment.id)
            await record_change(
                uow,
                HistoryEntityType.USER_ROLE,
                str(assignment.id),
                ChangeOperation.REVOKE,
                snapshot(assignment),
                None,
                performed_by,
                {"reason": reason},
            )

        await invalidate_user(self._cache, user_id)
        logger.info("Revoked role %s from user %s by %s", role_id, user_id, performed_by)
