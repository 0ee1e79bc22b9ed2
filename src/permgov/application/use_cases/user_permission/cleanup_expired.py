"""Cleanup expired temporary permissions use case."""

import logging
from datetime import UTC, datetime

from permgov.application.cache_keys import invalidate_users
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)

EXPIRED_REASON = "Temporary permission expired"


class CleanupExpiredPermissionsUseCase:
    """Delete temporary grants whose valid_until has passed."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(self, performed_by: str = "system") -> int:
        """Returns number of grants removed. Each removal gets its own REVOKE entry."""
        now = datetime.now(UTC)
        async with self._uow_factory() as uow:
            expired = await uow.user_permissions.list_expired_temporary(now)
            for grant in expired:
                await uow.user_permissions.delete(grant.id)
                await record_change(
                    uow,
                    HistoryEntityType.USER_PERMISSION,
                    str(grant.id),
                    ChangeOperation.REVOKE,
                    snapshot(grant),
                    None,
                    performed_by,
                    {"reason": EXPIRED_REASON},
                )

        await invalidate_users(self._cache, [g.user_id for g in expired])
        if expired:
            logger.info("Cleaned up %d expired temporary permissions", len(expired))
        return len(expired)
