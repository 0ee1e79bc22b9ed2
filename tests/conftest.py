"""Pytest fixtures for permgov tests."""

from __future__ import annotations

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from permgov.application.dto.history_dto import HistoryFilters
from permgov.config import Settings
from permgov.domain.entities import (
    ChangeHistoryEntry,
    Permission,
    Role,
    RolePermission,
    UserPermissionGrant,
    UserRoleAssignment,
)
from permgov.infrastructure.cache.memory_cache import InMemoryPermissionCache
from permgov.main import build_engine


# --- In-memory storage shared by every unit of work ---


class FakeStore:
    """Tables backing the fake repositories. Survives across units of work."""

    def __init__(self) -> None:
        self.permissions: dict[UUID, Permission] = {}
        self.roles: dict[UUID, Role] = {}
        self.role_permissions: dict[UUID, RolePermission] = {}
        self.user_roles: dict[UUID, UserRoleAssignment] = {}
        self.user_permissions: dict[UUID, UserPermissionGrant] = {}
        self.history: list[ChangeHistoryEntry] = []
        self.users: set[str] = set()

    def snapshot(self) -> dict:
        return copy.deepcopy(self.__dict__)

    def restore(self, state: dict) -> None:
        self.__dict__.update(state)

    # Seeding helpers

    def add_user(self, user_id: str) -> str:
        self.users.add(user_id)
        return user_id

    def add_permission(
        self,
        code: str,
        resource: str | None = None,
        action: str | None = None,
        scope: str | None = None,
        is_active: bool = True,
    ) -> Permission:
        default_resource, _, default_action = code.partition(".")
        permission = Permission(
            id=uuid4(),
            code=code,
            name=code.replace(".", " ").title(),
            resource=resource or default_resource,
            action=action or default_action,
            scope=scope,
            is_active=is_active,
        )
        self.permissions[permission.id] = permission
        return permission

    def add_role(self, name: str, hierarchy_level: int = 0, is_active: bool = True) -> Role:
        role = Role(
            id=uuid4(),
            code=name.lower().replace(" ", "_"),
            name=name,
            hierarchy_level=hierarchy_level,
            is_active=is_active,
        )
        self.roles[role.id] = role
        return role

    def link(self, role: Role, permission: Permission, **kwargs) -> RolePermission:
        now = datetime.now(UTC)
        link = RolePermission(
            id=uuid4(),
            role_id=role.id,
            permission_id=permission.id,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        self.role_permissions[link.id] = link
        return link

    def assign(self, user_id: str, role: Role, **kwargs) -> UserRoleAssignment:
        now = datetime.now(UTC)
        self.users.add(user_id)
        assignment = UserRoleAssignment(
            id=uuid4(),
            user_id=user_id,
            role_id=role.id,
            assigned_at=now,
            updated_at=now,
            **kwargs,
        )
        self.user_roles[assignment.id] = assignment
        return assignment

    def grant(self, user_id: str, permission: Permission, **kwargs) -> UserPermissionGrant:
        now = datetime.now(UTC)
        self.users.add(user_id)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        grant = UserPermissionGrant(
            id=uuid4(),
            user_id=user_id,
            permission_id=permission.id,
            **kwargs,
        )
        self.user_permissions[grant.id] = grant
        return grant


# --- Fake repositories ---


class FakePermissionRepository:
    """In-memory permission catalog."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        return copy.copy(self._store.permissions.get(permission_id))

    async def get_by_code(self, code: str) -> Permission | None:
        for p in self._store.permissions.values():
            if p.code == code:
                return copy.copy(p)
        return None

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]:
        return [
            copy.copy(self._store.permissions[pid])
            for pid in permission_ids
            if pid in self._store.permissions
        ]

    async def list(
        self,
        *,
        resource: str | None = None,
        action: str | None = None,
        include_inactive: bool = False,
    ) -> list[Permission]:
        items = [
            copy.copy(p)
            for p in self._store.permissions.values()
            if (include_inactive or p.is_active)
            and (resource is None or p.resource == resource)
            and (action is None or p.action == action)
        ]
        items.sort(key=lambda p: (p.resource, p.action, p.code))
        return items


class FakeRoleRepository:
    """In-memory role repository."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, role_id: UUID) -> Role | None:
        return copy.copy(self._store.roles.get(role_id))

    async def get_by_code(self, code: str) -> Role | None:
        for r in self._store.roles.values():
            if r.code == code:
                return copy.copy(r)
        return None

    async def list_by_ids(self, role_ids: list[UUID]) -> list[Role]:
        return [copy.copy(self._store.roles[rid]) for rid in role_ids if rid in self._store.roles]

    async def list_all(self, include_inactive: bool = False) -> list[Role]:
        return [
            copy.copy(r) for r in self._store.roles.values() if include_inactive or r.is_active
        ]


class FakeRolePermissionRepository:
    """In-memory role permission links."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, role_permission_id: UUID) -> RolePermission | None:
        return copy.copy(self._store.role_permissions.get(role_permission_id))

    async def get(self, role_id: UUID, permission_id: UUID) -> RolePermission | None:
        for rp in self._store.role_permissions.values():
            if rp.role_id == role_id and rp.permission_id == permission_id:
                return copy.copy(rp)
        return None

    async def list_by_role(self, role_id: UUID) -> list[RolePermission]:
        return [copy.copy(rp) for rp in self._store.role_permissions.values() if rp.role_id == role_id]

    async def list_by_roles(self, role_ids: list[UUID]) -> list[RolePermission]:
        wanted = set(role_ids)
        return [copy.copy(rp) for rp in self._store.role_permissions.values() if rp.role_id in wanted]

    async def create(self, role_permission: RolePermission) -> RolePermission:
        self._store.role_permissions[role_permission.id] = copy.copy(role_permission)
        return role_permission

    async def create_batch(self, role_permissions: list[RolePermission]) -> list[RolePermission]:
        for rp in role_permissions:
            await self.create(rp)
        return role_permissions

    async def update(self, role_permission: RolePermission) -> None:
        self._store.role_permissions[role_permission.id] = copy.copy(role_permission)

    async def delete(self, role_permission_id: UUID) -> None:
        self._store.role_permissions.pop(role_permission_id, None)


class FakeUserRoleRepository:
    """In-memory user role assignments."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, assignment_id: UUID) -> UserRoleAssignment | None:
        return copy.copy(self._store.user_roles.get(assignment_id))

    async def get(self, user_id: str, role_id: UUID) -> UserRoleAssignment | None:
        for a in self._store.user_roles.values():
            if a.user_id == user_id and a.role_id == role_id:
                return copy.copy(a)
        return None

    async def list_by_user(self, user_id: str) -> list[UserRoleAssignment]:
        return [copy.copy(a) for a in self._store.user_roles.values() if a.user_id == user_id]

    async def list_user_ids_by_role(self, role_id: UUID) -> list[str]:
        return list(
            dict.fromkeys(a.user_id for a in self._store.user_roles.values() if a.role_id == role_id)
        )

    async def create(self, assignment: UserRoleAssignment) -> UserRoleAssignment:
        self._store.user_roles[assignment.id] = copy.copy(assignment)
        return assignment

    async def update(self, assignment: UserRoleAssignment) -> None:
        self._store.user_roles[assignment.id] = copy.copy(assignment)

    async def delete(self, assignment_id: UUID) -> None:
        self._store.user_roles.pop(assignment_id, None)


class FakeUserPermissionRepository:
    """In-memory direct user grants. Duplicates are allowed when seeded directly."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, grant_id: UUID) -> UserPermissionGrant | None:
        return copy.copy(self._store.user_permissions.get(grant_id))

    async def get(self, user_id: str, permission_id: UUID) -> UserPermissionGrant | None:
        for g in self._store.user_permissions.values():
            if g.user_id == user_id and g.permission_id == permission_id:
                return copy.copy(g)
        return None

    async def list_by_user(self, user_id: str) -> list[UserPermissionGrant]:
        return [copy.copy(g) for g in self._store.user_permissions.values() if g.user_id == user_id]

    async def list_expired_temporary(self, now: datetime) -> list[UserPermissionGrant]:
        return [
            copy.copy(g)
            for g in self._store.user_permissions.values()
            if g.is_temporary and g.valid_until is not None and g.valid_until <= now
        ]

    async def create(self, grant: UserPermissionGrant) -> UserPermissionGrant:
        self._store.user_permissions[grant.id] = copy.copy(grant)
        return grant

    async def create_batch(self, grants: list[UserPermissionGrant]) -> list[UserPermissionGrant]:
        for g in grants:
            await self.create(g)
        return grants

    async def update(self, grant: UserPermissionGrant) -> None:
        self._store.user_permissions[grant.id] = copy.copy(grant)

    async def delete(self, grant_id: UUID) -> None:
        self._store.user_permissions.pop(grant_id, None)

    async def list(
        self,
        user_id: str,
        *,
        is_granted: bool | None = None,
        is_temporary: bool | None = None,
        active_at: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[UserPermissionGrant], int]:
        items = [
            g
            for g in self._store.user_permissions.values()
            if g.user_id == user_id
            and (is_granted is None or g.is_granted == is_granted)
            and (is_temporary is None or g.is_temporary == is_temporary)
            and (active_at is None or g.is_in_force(active_at))
        ]
        items.sort(key=lambda g: (g.priority, g.created_at), reverse=True)
        return [copy.copy(g) for g in items[offset : offset + limit]], len(items)


class FakeChangeHistoryRepository:
    """In-memory append-only ledger."""

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def create(self, entry: ChangeHistoryEntry) -> ChangeHistoryEntry:
        self._store.history.append(entry)
        return entry

    async def get_by_id(self, change_id: UUID) -> ChangeHistoryEntry | None:
        for e in self._store.history:
            if e.id == change_id:
                return e
        return None

    async def list(
        self,
        filters: HistoryFilters,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChangeHistoryEntry], int]:
        f = filters
        items = [
            e
            for e in reversed(self._store.history)
            if (f.entity_type is None or e.entity_type == f.entity_type)
            and (f.entity_id is None or e.entity_id == f.entity_id)
            and (f.performed_by is None or e.performed_by == f.performed_by)
            and (f.operation is None or e.operation == f.operation)
            and (f.start_date is None or e.created_at >= f.start_date)
            and (f.end_date is None or e.created_at <= f.end_date)
        ]
        items.sort(key=lambda e: e.created_at, reverse=True)
        return items[offset : offset + limit], len(items)


class FakeUserRepository:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def exists(self, user_id: str) -> bool:
        return user_id in self._store.users


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work. rollback restores the store as it was on entry."""

    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self._saved = self.store.snapshot()
        self.permissions = FakePermissionRepository(self.store)
        self.roles = FakeRoleRepository(self.store)
        self.role_permissions = FakeRolePermissionRepository(self.store)
        self.user_roles = FakeUserRoleRepository(self.store)
        self.user_permissions = FakeUserPermissionRepository(self.store)
        self.change_history = FakeChangeHistoryRepository(self.store)
        self.users = FakeUserRepository(self.store)
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.store.restore(self._saved)
        self.rolled_back = True


def make_uow_factory(store: FakeStore):
    """Factory yielding a FakeUnitOfWork over store; commits on exit, rolls back on error."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[FakeUnitOfWork]:
        uow = FakeUnitOfWork(store)
        try:
            yield uow
            await uow.commit()
        except BaseException:
            await uow.rollback()
            raise

    return factory


# --- Fixtures ---


@pytest.fixture
def store() -> FakeStore:
    """Fresh in-memory tables for each test."""
    return FakeStore()


@pytest.fixture
def uow_factory(store: FakeStore):
    return make_uow_factory(store)


@pytest.fixture
def cache() -> InMemoryPermissionCache:
    return InMemoryPermissionCache()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def engine(uow_factory, cache, settings):
    """Fully wired engine over the fake store and an in-memory cache."""
    return build_engine(uow_factory, cache, settings)
