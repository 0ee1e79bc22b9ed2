"""Atomic bulk grant / removal of user permissions."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from permgov.application.cache_keys import invalidate_user
from permgov.application.dto.grant_dto import (
    BulkGrantInput,
    BulkGrantResult,
    BulkRemoveInput,
    BulkRemoveResult,
)
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.catalog.permission_catalog import (
    load_active_permission,
    require_user,
)
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import DEFAULT_PRIORITY, UserPermissionGrant
from permgov.domain.exceptions import InvalidInput
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class BulkGrantUserPermissionsUseCase:
    """Grant several permissions to one user in a single transaction.

    Permissions the user already has an entry for are skipped. Either every
    new row and the BULK_ASSIGN entry are written, or nothing is.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        cache: PermissionCache,
        default_priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache
        self._default_priority = default_priority

    async def execute(
        self,
        user_id: str,
        data: BulkGrantInput,
        granted_by: str,
    ) -> BulkGrantResult:
        async with self._uow_factory() as uow:
            await require_user(uow, user_id)

            now = datetime.now(UTC)
            grants: list[UserPermissionGrant] = []
            skipped = []
            for permission_id in dict.fromkeys(data.permission_ids):
                permission = await load_active_permission(uow, permission_id)
                if await uow.user_permissions.get(user_id, permission.id):
                    skipped.append(permission.id)
                    continue
                grants.append(
                    UserPermissionGrant(
                        id=uuid4(),
                        user_id=user_id,
                        permission_id=permission.id,
                        created_at=now,
                        updated_at=now,
                        is_granted=data.is_granted,
                        priority=(
                            data.priority if data.priority is not None else self._default_priority
                        ),
                        valid_from=data.valid_from,
                        valid_until=data.valid_until,
                        is_temporary=data.is_temporary,
                        conditions=data.conditions,
                        granted_by=granted_by,
                        grant_reason=data.grant_reason,
                    )
                )
            if not grants:
                raise InvalidInput("All permissions are already assigned to the user")

            await uow.user_permissions.create_batch(grants)
            items = [snapshot(g) for g in grants]
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                user_id,
                ChangeOperation.BULK_ASSIGN,
                None,
                {"user_id": user_id, "items": items, "count": len(items)},
                granted_by,
                {"reason": data.grant_reason, "skipped": [str(pid) for pid in skipped]},
            )

        await invalidate_user(self._cache, user_id)
        logger.info(
            "Bulk granted %d permissions to user %s (%d skipped)",
            len(grants),
            user_id,
            len(skipped),
        )
        return BulkGrantResult(assigned=grants, skipped=skipped)


class BulkRemoveUserPermissionsUseCase:
    """Remove several direct entries from one user in a single transaction."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        user_id: str,
        data: BulkRemoveInput,
        performed_by: str,
    ) -> BulkRemoveResult:
        requested = list(dict.fromkeys(data.permission_ids))
        async with self._uow_factory() as uow:
            found = []
            for permission_id in requested:
                grant = await uow.user_permissions.get(user_id, permission_id)
                if grant:
                    found.append(grant)
            if not found:
                raise InvalidInput("No matching permissions found for the user")

            for grant in found:
                await uow.user_permissions.delete(grant.id)
            items = [snapshot(g) for g in found]
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                user_id,
                ChangeOperation.BULK_REMOVE,
                {"user_id": user_id, "items": items, "count": len(items)},
                None,
                performed_by,
                {"reason": data.reason},
            )

        await invalidate_user(self._cache, user_id)
        logger.info("Bulk removed %d permissions from user %s", len(found), user_id)
        return BulkRemoveResult(removed=len(found), not_found=len(requested) - len(found))
