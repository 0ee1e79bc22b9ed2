"""Direct user grants and denials currently in force."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from permgov.application.ports import UnitOfWork
from permgov.domain.value_objects import Conditions, next_boundary


@dataclass(frozen=True)
class DirectGrant:
    """User-level entry. is_granted=False is an explicit deny."""

    permission_id: UUID
    is_granted: bool
    priority: int
    is_temporary: bool
    valid_until: datetime | None
    updated_at: datetime
    conditions: Conditions | None = None


class DirectGrantResolver:
    """Resolve a user's direct entries whose validity window contains now."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def resolve(self, user_id: str, now: datetime | None = None) -> list[DirectGrant]:
        async with self._uow_factory() as uow:
            return await self.resolve_in(uow, user_id, now)

    async def resolve_in(
        self, uow: UnitOfWork, user_id: str, now: datetime | None = None
    ) -> list[DirectGrant]:
        grants, _ = await self.resolve_with_boundary_in(uow, user_id, now)
        return grants

    async def resolve_with_boundary_in(
        self, uow: UnitOfWork, user_id: str, now: datetime | None = None
    ) -> tuple[list[DirectGrant], datetime | None]:
        """Resolve, and report the next moment an entry starts or ends."""
        now = now or datetime.now(UTC)
        rows = await uow.user_permissions.list_by_user(user_id)
        boundary = next_boundary(
            [g.valid_from for g in rows] + [g.valid_until for g in rows], now
        )
        grants = [g for g in rows if g.is_in_force(now)]
        if not grants:
            return [], boundary
        active = {
            p.id
            for p in await uow.permissions.list_by_ids(
                list(dict.fromkeys(g.permission_id for g in grants))
            )
            if p.is_active
        }
        return [
            DirectGrant(
                permission_id=g.permission_id,
                is_granted=g.is_granted,
                priority=g.priority,
                is_temporary=g.is_temporary,
                valid_until=g.valid_until,
                updated_at=g.updated_at,
                conditions=g.conditions,
            )
            for g in grants
            if g.permission_id in active
        ], boundary
