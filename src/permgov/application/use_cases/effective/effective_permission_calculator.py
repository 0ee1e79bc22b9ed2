"""Effective permission calculation - merge of direct and role grants."""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from uuid import UUID

from permgov.application.cache_keys import effective_key
from permgov.application.dto.access_dto import PermissionResult
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import effective_set_from_dict, effective_set_to_dict
from permgov.application.use_cases.effective.direct_grant_resolver import (
    DirectGrant,
    DirectGrantResolver,
)
from permgov.application.use_cases.effective.role_grant_resolver import (
    RoleGrant,
    RoleGrantResolver,
)
from permgov.domain.entities import (
    EffectivePermission,
    EffectivePermissionSet,
    Permission,
    PermissionSources,
)
from permgov.domain.value_objects import PermissionSource, earliest

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


def cache_ttl(ttl: int, boundary: datetime | None, now: datetime) -> int:
    """Whole seconds a set computed at now may be cached.

    The entry expires no later than the next window edge. Zero means do not
    cache.
    """
    if boundary is None:
        return ttl
    return max(0, min(ttl, int((boundary - now).total_seconds())))


def _pick_direct(direct: Iterable[DirectGrant]) -> dict[UUID, DirectGrant]:
    """One direct entry per permission: highest priority, then latest update."""
    chosen: dict[UUID, DirectGrant] = {}
    for grant in direct:
        current = chosen.get(grant.permission_id)
        if current is None or (grant.priority, grant.updated_at) > (
            current.priority,
            current.updated_at,
        ):
            chosen[grant.permission_id] = grant
    return chosen


def merge_grants(
    user_id: str,
    direct: list[DirectGrant],
    role: list[RoleGrant],
    catalog: dict[UUID, Permission],
    now: datetime,
) -> EffectivePermissionSet:
    """Apply the precedence policy.

    A user-level entry, grant or deny, always decides its permission; role
    grants only fill permissions the user has no entry for. Explicit denies
    are kept apart from the granted set. No entry at either level means no
    access.
    """
    entries: dict[UUID, EffectivePermission] = {}

    for permission_id, grant in _pick_direct(direct).items():
        permission = catalog.get(permission_id)
        if permission is None:
            continue
        entries[permission_id] = EffectivePermission(
            permission_id=permission_id,
            code=permission.code,
            resource=permission.resource,
            action=permission.action,
            scope=permission.scope,
            source=PermissionSource.USER,
            is_granted=grant.is_granted,
            priority=grant.priority,
            valid_until=grant.valid_until,
            is_temporary=grant.is_temporary,
            conditions=grant.conditions,
        )

    for grant in role:
        if grant.permission_id in entries:
            continue
        permission = catalog.get(grant.permission_id)
        if permission is None:
            continue
        entries[grant.permission_id] = EffectivePermission(
            permission_id=grant.permission_id,
            code=permission.code,
            resource=permission.resource,
            action=permission.action,
            scope=permission.scope,
            source=PermissionSource.ROLE,
            is_granted=True,
            role_id=grant.role_id,
            role_name=grant.role_name,
            valid_until=grant.valid_until,
            conditions=grant.conditions,
        )

    return EffectivePermissionSet(
        user_id=user_id,
        permissions={pid: e for pid, e in entries.items() if e.is_granted},
        denied={pid: e for pid, e in entries.items() if not e.is_granted},
        computed_at=now,
        sources=PermissionSources(
            direct_user=len(direct),
            from_roles=len({g.role_id for g in role}),
        ),
    )


class EffectivePermissionCalculator:
    """Compute a user's effective permissions, cache first."""

    def __init__(
        self,
        unit_of_work_factory: type,
        cache: PermissionCache,
        role_resolver: RoleGrantResolver | None = None,
        direct_resolver: DirectGrantResolver | None = None,
        ttl: int = DEFAULT_TTL,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache
        self._role_resolver = role_resolver or RoleGrantResolver(unit_of_work_factory)
        self._direct_resolver = direct_resolver or DirectGrantResolver(unit_of_work_factory)
        self._ttl = ttl

    async def calculate(self, user_id: str, use_cache: bool = True) -> EffectivePermissionSet:
        key = effective_key(user_id)
        if use_cache:
            cached = await self._cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for user %s permissions", user_id)
                return effective_set_from_dict(cached)
            logger.debug("Cache miss for user %s permissions", user_id)

        now = datetime.now(UTC)
        async with self._uow_factory() as uow:
            direct, direct_boundary = await self._direct_resolver.resolve_with_boundary_in(
                uow, user_id, now
            )
            role, role_boundary = await self._role_resolver.resolve_with_boundary_in(
                uow, user_id, now
            )
            permission_ids = list(
                dict.fromkeys(
                    [g.permission_id for g in direct] + [g.permission_id for g in role]
                )
            )
            catalog = {p.id: p for p in await uow.permissions.list_by_ids(permission_ids)}

        effective = merge_grants(user_id, direct, role, catalog, now)
        ttl = cache_ttl(self._ttl, earliest(direct_boundary, role_boundary), now)
        if ttl > 0:
            await self._cache.set(key, effective_set_to_dict(effective), ttl)
        return effective

    async def has_permission(self, user_id: str, code: str) -> bool:
        effective = await self.calculate(user_id)
        return effective.find_by_code(code) is not None

    async def explain(self, user_id: str, permission_id: UUID) -> PermissionResult:
        """Say which entry decides permission_id for the user, and why."""
        effective = await self.calculate(user_id)
        denied = effective.denied.get(permission_id)
        if denied:
            return PermissionResult(
                has_permission=False,
                reason=f"Explicit user deny: {denied.code}",
                source=PermissionSource.USER,
                permission_id=permission_id,
                code=denied.code,
                valid_until=denied.valid_until,
            )
        granted = effective.permissions.get(permission_id)
        if granted is None:
            return PermissionResult(
                has_permission=False,
                reason="No matching permission found",
                permission_id=permission_id,
            )
        if granted.source == PermissionSource.USER:
            reason = f"Direct permission: {granted.code}"
        else:
            reason = f"Granted by role {granted.role_name}: {granted.code}"
        return PermissionResult(
            has_permission=True,
            reason=reason,
            source=granted.source,
            permission_id=permission_id,
            code=granted.code,
            role_name=granted.role_name,
            valid_until=granted.valid_until,
            conditions=granted.conditions,
        )

    async def warmup(self, user_ids: Iterable[str]) -> int:
        """Recompute and cache effective sets for the given users."""
        count = 0
        for user_id in dict.fromkeys(user_ids):
            await self.calculate(user_id, use_cache=False)
            count += 1
        logger.info("Warmed permission cache for %d users", count)
        return count
