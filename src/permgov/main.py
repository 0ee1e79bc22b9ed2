"""Application entry point and composition root."""

import logging
from dataclasses import dataclass

from psycopg_pool import AsyncConnectionPool

from permgov import __version__
from permgov.application.ports import PermissionCache, PermissionChecker
from permgov.application.use_cases.bulk.bulk_operation_coordinator import (
    BulkOperationCoordinator,
)
from permgov.application.use_cases.catalog.permission_catalog import PermissionCatalog
from permgov.application.use_cases.effective.direct_grant_resolver import DirectGrantResolver
from permgov.application.use_cases.effective.effective_permission_calculator import (
    EffectivePermissionCalculator,
)
from permgov.application.use_cases.effective.role_grant_resolver import RoleGrantResolver
from permgov.application.use_cases.history.change_history_ledger import ChangeHistoryLedger
from permgov.application.use_cases.history.export_history import ExportHistoryUseCase
from permgov.application.use_cases.role_assignment.assign_role import AssignRoleUseCase
from permgov.application.use_cases.role_assignment.list_user_roles import ListUserRolesUseCase
from permgov.application.use_cases.role_assignment.revoke_role import RevokeRoleUseCase
from permgov.application.use_cases.role_permission.assign_role_permission import (
    AssignRolePermissionUseCase,
)
from permgov.application.use_cases.role_permission.bulk_role_permissions import (
    BulkAssignRolePermissionsUseCase,
    BulkRemoveRolePermissionsUseCase,
)
from permgov.application.use_cases.role_permission.remove_role_permission import (
    RemoveRolePermissionUseCase,
)
from permgov.application.use_cases.role_permission.update_role_permission import (
    UpdateRolePermissionUseCase,
)
from permgov.application.use_cases.user_permission.bulk_permissions import (
    BulkGrantUserPermissionsUseCase,
    BulkRemoveUserPermissionsUseCase,
)
from permgov.application.use_cases.user_permission.cleanup_expired import (
    CleanupExpiredPermissionsUseCase,
)
from permgov.application.use_cases.user_permission.grant_permission import (
    GrantUserPermissionUseCase,
)
from permgov.application.use_cases.user_permission.list_permissions import (
    GetTemporaryPermissionsUseCase,
    ListUserPermissionsUseCase,
)
from permgov.application.use_cases.user_permission.revoke_permission import (
    RevokeUserPermissionUseCase,
)
from permgov.application.use_cases.user_permission.update_permission import (
    UpdateUserPermissionUseCase,
)
from permgov.config import Settings, get_settings
from permgov.infrastructure.cache.memory_cache import InMemoryPermissionCache
from permgov.infrastructure.cache.redis_cache import RedisPermissionCache
from permgov.infrastructure.permission.permission_checker import EffectivePermissionChecker
from permgov.infrastructure.persistence.postgres.connection import create_pool
from permgov.infrastructure.persistence.postgres.unit_of_work import create_uow_factory

logger = logging.getLogger(__name__)


def main() -> None:
    """CLI entry point."""
    print(f"permgov v{__version__}")


def configure_logging(settings: Settings) -> None:
    level = "DEBUG" if settings.debug else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class PermGovEngine:
    """Wired engine. The transport layer calls these directly."""

    settings: Settings
    cache: PermissionCache
    catalog: PermissionCatalog
    calculator: EffectivePermissionCalculator
    checker: PermissionChecker
    ledger: ChangeHistoryLedger
    export_history: ExportHistoryUseCase
    grant_permission: GrantUserPermissionUseCase
    update_permission: UpdateUserPermissionUseCase
    revoke_permission: RevokeUserPermissionUseCase
    bulk_grant_permissions: BulkGrantUserPermissionsUseCase
    bulk_remove_permissions: BulkRemoveUserPermissionsUseCase
    list_permissions: ListUserPermissionsUseCase
    temporary_permissions: GetTemporaryPermissionsUseCase
    cleanup_expired: CleanupExpiredPermissionsUseCase
    assign_role: AssignRoleUseCase
    revoke_role: RevokeRoleUseCase
    list_user_roles: ListUserRolesUseCase
    assign_role_permission: AssignRolePermissionUseCase
    update_role_permission: UpdateRolePermissionUseCase
    remove_role_permission: RemoveRolePermissionUseCase
    bulk_assign_role_permissions: BulkAssignRolePermissionsUseCase
    bulk_remove_role_permissions: BulkRemoveRolePermissionsUseCase
    bulk: BulkOperationCoordinator
    pool: AsyncConnectionPool | None = None

    async def open(self) -> None:
        if self.pool is not None:
            await self.pool.open()
        logger.info("permgov engine opened (cache=%s)", type(self.cache).__name__)

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
        if isinstance(self.cache, RedisPermissionCache):
            await self.cache.close()
        logger.info("permgov engine closed")


def build_engine(
    uow_factory: type,
    cache: PermissionCache,
    settings: Settings,
    pool: AsyncConnectionPool | None = None,
) -> PermGovEngine:
    """Wire every use case around a unit of work factory and a cache."""
    calculator = EffectivePermissionCalculator(
        uow_factory,
        cache,
        role_resolver=RoleGrantResolver(uow_factory),
        direct_resolver=DirectGrantResolver(uow_factory),
        ttl=settings.effective_permissions_ttl,
    )
    assign_role = AssignRoleUseCase(uow_factory, cache)
    revoke_role = RevokeRoleUseCase(uow_factory, cache)
    assign_role_permission = AssignRolePermissionUseCase(uow_factory, cache)

    return PermGovEngine(
        settings=settings,
        cache=cache,
        catalog=PermissionCatalog(uow_factory),
        calculator=calculator,
        checker=EffectivePermissionChecker(calculator),
        ledger=ChangeHistoryLedger(uow_factory, cache),
        export_history=ExportHistoryUseCase(uow_factory, limit=settings.history_export_limit),
        grant_permission=GrantUserPermissionUseCase(
            uow_factory, cache, default_priority=settings.default_grant_priority
        ),
        update_permission=UpdateUserPermissionUseCase(uow_factory, cache),
        revoke_permission=RevokeUserPermissionUseCase(uow_factory, cache),
        bulk_grant_permissions=BulkGrantUserPermissionsUseCase(
            uow_factory, cache, default_priority=settings.default_grant_priority
        ),
        bulk_remove_permissions=BulkRemoveUserPermissionsUseCase(uow_factory, cache),
        list_permissions=ListUserPermissionsUseCase(
            uow_factory, cache, ttl=settings.list_cache_ttl
        ),
        temporary_permissions=GetTemporaryPermissionsUseCase(uow_factory),
        cleanup_expired=CleanupExpiredPermissionsUseCase(uow_factory, cache),
        assign_role=assign_role,
        revoke_role=revoke_role,
        list_user_roles=ListUserRolesUseCase(uow_factory, cache, ttl=settings.list_cache_ttl),
        assign_role_permission=assign_role_permission,
        update_role_permission=UpdateRolePermissionUseCase(uow_factory, cache),
        remove_role_permission=RemoveRolePermissionUseCase(uow_factory, cache),
        bulk_assign_role_permissions=BulkAssignRolePermissionsUseCase(uow_factory, cache),
        bulk_remove_role_permissions=BulkRemoveRolePermissionsUseCase(uow_factory, cache),
        bulk=BulkOperationCoordinator(
            assign_role,
            revoke_role,
            assign_role_permission,
            concurrency=settings.bulk_concurrency,
        ),
        pool=pool,
    )


def create_permgov_engine(settings: Settings | None = None) -> PermGovEngine:
    """Composition root - build the engine with Postgres storage and the configured cache."""
    settings = settings or get_settings()
    configure_logging(settings)
    pool = create_pool(
        settings.database_url,
        min_size=settings.database_pool_min_size,
        max_size=settings.database_pool_max_size,
    )
    uow_factory = create_uow_factory(pool)

    if settings.cache_backend == "redis":
        cache: PermissionCache = RedisPermissionCache.from_url(
            settings.redis_url, key_prefix=settings.cache_prefix
        )
    else:
        cache = InMemoryPermissionCache()

    return build_engine(uow_factory, cache, settings, pool=pool)
