"""Unit of Work port - transactional boundary."""

from collections.abc import AsyncIterator
from typing import Protocol

from permgov.application.ports.repositories import (
    ChangeHistoryRepository,
    PermissionRepository,
    RolePermissionRepository,
    RoleRepository,
    UserPermissionRepository,
    UserRepository,
    UserRoleRepository,
)


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def permissions(self) -> PermissionRepository: ...

    @property
    def roles(self) -> RoleRepository: ...

    @property
    def role_permissions(self) -> RolePermissionRepository: ...

    @property
    def user_roles(self) -> UserRoleRepository: ...

    @property
    def user_permissions(self) -> UserPermissionRepository: ...

    @property
    def change_history(self) -> ChangeHistoryRepository: ...

    @property
    def users(self) -> UserRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for creating UnitOfWork instances.

    Calling it returns an async context manager that commits on clean exit and
    rolls back when the block raises.
    """

    def __call__(self) -> AsyncIterator[UnitOfWork]: ...
