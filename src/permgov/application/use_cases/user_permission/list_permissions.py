"""Read use cases over a user's direct permission entries."""

import logging
from datetime import UTC, datetime

from permgov.application.cache_keys import user_permissions_list_key
from permgov.application.dto.grant_dto import (
    TemporaryPermissions,
    UserPermissionFilters,
    UserPermissionPage,
)
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import restore, snapshot
from permgov.application.use_cases.catalog.permission_catalog import require_user
from permgov.domain.value_objects import HistoryEntityType

logger = logging.getLogger(__name__)


class ListUserPermissionsUseCase:
    """Paged list of a user's direct entries, cached per filter combination."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache, ttl: int = 300) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache
        self._ttl = ttl

    async def execute(
        self,
        user_id: str,
        filters: UserPermissionFilters | None = None,
    ) -> UserPermissionPage:
        filters = filters or UserPermissionFilters()
        key = user_permissions_list_key(user_id, filters.cache_fragment())
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return UserPermissionPage(
                items=[restore(HistoryEntityType.USER_PERMISSION, row) for row in cached["items"]],
                total=cached["total"],
                page=filters.page,
                limit=filters.limit,
            )

        async with self._uow_factory() as uow:
            await require_user(uow, user_id)
            items, total = await uow.user_permissions.list(
                user_id,
                is_granted=filters.is_granted,
                is_temporary=filters.is_temporary,
                active_at=datetime.now(UTC) if filters.active_only else None,
                offset=(filters.page - 1) * filters.limit,
                limit=filters.limit,
            )

        await self._cache.set(
            key, {"items": [snapshot(g) for g in items], "total": total}, self._ttl
        )
        return UserPermissionPage(items=items, total=total, page=filters.page, limit=filters.limit)


class GetTemporaryPermissionsUseCase:
    """Temporary grants currently in force, soonest expiry first."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, user_id: str) -> TemporaryPermissions:
        now = datetime.now(UTC)
        async with self._uow_factory() as uow:
            await require_user(uow, user_id)
            grants = await uow.user_permissions.list_by_user(user_id)
        temporary = [g for g in grants if g.is_temporary and g.is_in_force(now)]
        temporary.sort(key=lambda g: g.valid_until)
        return TemporaryPermissions(user_id=user_id, temporary=temporary)
