"""PostgreSQL Unit of Work implementation."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import psycopg
from psycopg_pool import AsyncConnectionPool

from permgov.domain.exceptions import StorageFailure
from permgov.infrastructure.persistence.postgres.change_history_repository import (
    PostgresChangeHistoryRepository,
)
from permgov.infrastructure.persistence.postgres.permission_repository import (
    PostgresPermissionRepository,
)
from permgov.infrastructure.persistence.postgres.role_permission_repository import (
    PostgresRolePermissionRepository,
)
from permgov.infrastructure.persistence.postgres.role_repository import (
    PostgresRoleRepository,
)
from permgov.infrastructure.persistence.postgres.user_permission_repository import (
    PostgresUserPermissionRepository,
)
from permgov.infrastructure.persistence.postgres.user_repository import (
    PostgresUserRepository,
)
from permgov.infrastructure.persistence.postgres.user_role_repository import (
    PostgresUserRoleRepository,
)

logger = logging.getLogger(__name__)


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._permissions = PostgresPermissionRepository(self._conn)
        self._roles = PostgresRoleRepository(self._conn)
        self._role_permissions = PostgresRolePermissionRepository(self._conn)
        self._user_roles = PostgresUserRoleRepository(self._conn)
        self._user_permissions = PostgresUserPermissionRepository(self._conn)
        self._change_history = PostgresChangeHistoryRepository(self._conn)
        self._users = PostgresUserRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def permissions(self) -> PostgresPermissionRepository:
        return self._permissions

    @property
    def roles(self) -> PostgresRoleRepository:
        return self._roles

    @property
    def role_permissions(self) -> PostgresRolePermissionRepository:
        return self._role_permissions

    @property
    def user_roles(self) -> PostgresUserRoleRepository:
        return self._user_roles

    @property
    def user_permissions(self) -> PostgresUserPermissionRepository:
        return self._user_permissions

    @property
    def change_history(self) -> PostgresChangeHistoryRepository:
        return self._change_history

    @property
    def users(self) -> PostgresUserRepository:
        return self._users

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager).

    Driver errors surface as StorageFailure with the original as __cause__.
    """

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        uow = PostgresUnitOfWork(pool)
        try:
            async with uow:
                try:
                    yield uow
                    await uow.commit()
                except BaseException:
                    await uow.rollback()
                    raise
        except psycopg.Error as exc:
            logger.exception("Storage operation failed")
            raise StorageFailure(str(exc)) from exc

    return factory
