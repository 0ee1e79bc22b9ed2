"""Update user permission use case - fields and priority."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from permgov.application.cache_keys import invalidate_user
from permgov.application.dto.grant_dto import UpdatePermissionInput, UpdatePriorityInput
from permgov.application.ports import PermissionCache, UnitOfWork
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import UserPermissionGrant
from permgov.domain.exceptions import InvalidInput, NotFound
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType, ValidityWindow

logger = logging.getLogger(__name__)


async def load_user_permission(
    uow: UnitOfWork, user_id: str, permission_id: UUID
) -> UserPermissionGrant:
    grant = await uow.user_permissions.get(user_id, permission_id)
    if not grant:
        raise NotFound("User permission", f"{user_id}/{permission_id}")
    return grant


class UpdateUserPermissionUseCase:
    """Modify an existing direct user entry."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        user_id: str,
        permission_id: UUID,
        data: UpdatePermissionInput,
        performed_by: str,
    ) -> UserPermissionGrant:
        """Apply the non-None fields of data. Window is re-validated as a whole."""
        async with self._uow_factory() as uow:
            grant = await load_user_permission(uow, user_id, permission_id)
            previous = snapshot(grant)

            valid_from = data.valid_from if data.valid_from is not None else grant.valid_from
            if data.clear_valid_until:
                valid_until = None
            elif data.valid_until is not None:
                valid_until = data.valid_until
            else:
                valid_until = grant.valid_until
            ValidityWindow(valid_from, valid_until)
            if grant.is_temporary and valid_until is None:
                raise InvalidInput("Temporary permissions must have valid_until")

            if data.is_granted is not None:
                grant.is_granted = data.is_granted
            if data.priority is not None:
                grant.priority = data.priority
            if data.conditions is not None:
                grant.conditions = data.conditions
            grant.valid_from = valid_from
            grant.valid_until = valid_until
            grant.updated_at = datetime.now(UTC)

            await uow.user_permissions.update(grant)
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                str(grant.id),
                ChangeOperation.UPDATE,
                previous,
                snapshot(grant),
                performed_by,
            )

        await invalidate_user(self._cache, user_id)
        logger.info("Updated permission %s for user %s by %s", permission_id, user_id, performed_by)
        return grant

    async def update_priority(
        self,
        user_id: str,
        permission_id: UUID,
        data: UpdatePriorityInput,
        performed_by: str,
    ) -> UserPermissionGrant:
        async with self._uow_factory() as uow:
            grant = await load_user_permission(uow, user_id, permission_id)
            previous = snapshot(grant)
            old_priority = grant.priority

            grant.priority = data.priority
            grant.updated_at = datetime.now(UTC)
            await uow.user_permissions.update(grant)
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                str(grant.id),
                ChangeOperation.UPDATE_PRIORITY,
                previous,
                snapshot(grant),
                performed_by,
                {
                    "old_priority": old_priority,
                    "new_priority": data.priority,
                    "reason": data.reason,
                },
            )

        await invalidate_user(self._cache, user_id)
        logger.info(
            "Priority of permission %s for user %s changed %d -> %d",
            permission_id,
            user_id,
            old_priority,
            data.priority,
        )
        return grant
