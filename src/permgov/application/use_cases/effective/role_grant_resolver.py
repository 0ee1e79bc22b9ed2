"""Role-derived grants currently in force for a user."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from permgov.application.ports import UnitOfWork
from permgov.domain.value_objects import Conditions, earliest, next_boundary


@dataclass(frozen=True)
class RoleGrant:
    """Permission reachable through an active role. Always a grant.

    valid_until is the earlier end of the assignment and role permission
    windows.
    """

    role_id: UUID
    role_name: str
    permission_id: UUID
    is_granted: bool = True
    conditions: Conditions | None = None
    valid_until: datetime | None = None


class RoleGrantResolver:
    """Resolve permissions a user holds through roles.

    A grant is in force when the role is active, the assignment is active and
    its effective window contains now, the role permission is a grant whose
    own window contains now, and the permission is active in the catalog.
    Role permissions with is_granted=False are ignored: roles cannot deny.
    """

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def resolve(self, user_id: str, now: datetime | None = None) -> list[RoleGrant]:
        async with self._uow_factory() as uow:
            return await self.resolve_in(uow, user_id, now)

    async def resolve_in(
        self, uow: UnitOfWork, user_id: str, now: datetime | None = None
    ) -> list[RoleGrant]:
        """Resolve inside an open unit of work. Unknown users yield []."""
        grants, _ = await self.resolve_with_boundary_in(uow, user_id, now)
        return grants

    async def resolve_with_boundary_in(
        self, uow: UnitOfWork, user_id: str, now: datetime | None = None
    ) -> tuple[list[RoleGrant], datetime | None]:
        """Resolve, and report the next moment a window edge changes the result."""
        now = now or datetime.now(UTC)
        all_assignments = [a for a in await uow.user_roles.list_by_user(user_id) if a.is_active]
        boundary = next_boundary(
            [a.effective_from for a in all_assignments]
            + [a.effective_until for a in all_assignments],
            now,
        )
        assignments = {a.role_id: a for a in all_assignments if a.is_in_force(now)}
        if not assignments:
            return [], boundary

        roles = [r for r in await uow.roles.list_by_ids(list(assignments)) if r.is_active]
        if not roles:
            return [], boundary
        roles.sort(key=lambda r: (-r.hierarchy_level, r.name))

        granting = [
            rp
            for rp in await uow.role_permissions.list_by_roles([r.id for r in roles])
            if rp.is_granted
        ]
        boundary = earliest(
            boundary,
            next_boundary(
                [rp.valid_from for rp in granting] + [rp.valid_until for rp in granting], now
            ),
        )
        links = [rp for rp in granting if rp.is_in_force(now)]
        permission_ids = list(dict.fromkeys(rp.permission_id for rp in links))
        active = {
            p.id for p in await uow.permissions.list_by_ids(permission_ids) if p.is_active
        }

        by_role: dict[UUID, list] = {}
        for rp in links:
            if rp.permission_id in active:
                by_role.setdefault(rp.role_id, []).append(rp)

        grants: list[RoleGrant] = []
        for role in roles:
            assignment = assignments[role.id]
            for rp in by_role.get(role.id, []):
                grants.append(
                    RoleGrant(
                        role_id=role.id,
                        role_name=role.name,
                        permission_id=rp.permission_id,
                        conditions=rp.conditions,
                        valid_until=earliest(assignment.effective_until, rp.valid_until),
                    )
                )
        return grants, boundary
