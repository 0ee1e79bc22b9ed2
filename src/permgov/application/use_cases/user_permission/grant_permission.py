"""Grant user permission use case - direct grant or explicit deny."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from permgov.application.cache_keys import invalidate_user
from permgov.application.dto.grant_dto import GrantPermissionInput
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.catalog.permission_catalog import (
    load_active_permission,
    require_user,
)
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import DEFAULT_PRIORITY, UserPermissionGrant
from permgov.domain.exceptions import Conflict
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class GrantUserPermissionUseCase:
    """Create a direct user entry. is_granted=False records an explicit deny."""

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
        data: GrantPermissionInput,
        granted_by: str,
    ) -> UserPermissionGrant:
        """Grant (or deny) permission to user. Conflict if an entry exists."""
        async with self._uow_factory() as uow:
            await require_user(uow, user_id)
            permission = await load_active_permission(uow, data.permission_id)

            existing = await uow.user_permissions.get(user_id, data.permission_id)
            if existing:
                raise Conflict(
                    f"User {user_id} already has an entry for permission {permission.code}"
                )

            now = datetime.now(UTC)
            grant = UserPermissionGrant(
                id=uuid4(),
                user_id=user_id,
                permission_id=permission.id,
                created_at=now,
                updated_at=now,
                is_granted=data.is_granted,
                priority=data.priority if data.priority is not None else self._default_priority,
                valid_from=data.valid_from,
                valid_until=data.valid_until,
                is_temporary=data.is_temporary,
                conditions=data.conditions,
                granted_by=granted_by,
                grant_reason=data.grant_reason,
            )
            await uow.user_permissions.create(grant)
            await record_change(
                uow,
                HistoryEntityType.USER_PERMISSION,
                str(grant.id),
                ChangeOperation.ASSIGN,
                None,
                snapshot(grant),
                granted_by,
                {"reason": data.grant_reason, "permission_code": permission.code},
            )

        await invalidate_user(self._cache, user_id)
        logger.info(
            "%s permission %s for user %s by %s",
            "Granted" if grant.is_granted else "Denied",
            permission.code,
            user_id,
            granted_by,
        )
        return grant
