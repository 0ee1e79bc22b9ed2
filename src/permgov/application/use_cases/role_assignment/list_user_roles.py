"""List user roles use case."""

import logging

from permgov.application.cache_keys import user_roles_key
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import restore, snapshot
from permgov.application.use_cases.catalog.permission_catalog import require_user
from permgov.domain.entities import UserRoleAssignment
from permgov.domain.value_objects import HistoryEntityType

logger = logging.getLogger(__name__)


class ListUserRolesUseCase:
    """All role assignments of a user, including inactive ones. Cached."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache, ttl: int = 300) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache
        self._ttl = ttl

    async def execute(self, user_id: str) -> list[UserRoleAssignment]:
        key = user_roles_key(user_id)
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return [restore(HistoryEntityType.USER_ROLE, row) for row in cached]

        async with self._uow_factory() as uow:
            await require_user(uow, user_id)
            assignments = await uow.user_roles.list_by_user(user_id)

        await self._cache.set(key, [snapshot(a) for a in assignments], self._ttl)
        return assignments
