"""Assign role use case."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from permgov.application.cache_keys import invalidate_user
from permgov.application.dto.role_dto import AssignRoleInput
from permgov.application.ports import PermissionCache
from permgov.application.snapshots import snapshot
from permgov.application.use_cases.catalog.permission_catalog import load_active_role, require_user
from permgov.application.use_cases.history.change_history_ledger import record_change
from permgov.domain.entities import UserRoleAssignment
from permgov.domain.value_objects import ChangeOperation, HistoryEntityType

logger = logging.getLogger(__name__)


class AssignRoleUseCase:
    """Assign role to user, or update the existing assignment."""

    def __init__(self, unit_of_work_factory: type, cache: PermissionCache) -> None:
        self._uow_factory = unit_of_work_factory
        self._cache = cache

    async def execute(
        self,
        user_id: str,
        data: AssignRoleInput,
        assigned_by: str,
    ) -> UserRoleAssignment:
        """Create the (user, role) assignment, or update it if present."""
        async with self._uow_factory() as uow:
            await require_user(uow, user_id)
            role = await load_active_role(uow, data.role_id)

            now = datetime.now(UTC)
            existing = await uow.user_roles.get(user_id, role.id)
            if existing:
                previous = snapshot(existing)
                existing.is_active = data.is_active
                existing.effective_from = data.effective_from
                existing.effective_until = data.effective_until
                existing.assigned_by = assigned_by
                existing.updated_at = now
                await uow.user_roles.update(existing)
                assignment = existing
                operation = ChangeOperation.UPDATE
            else:
                previous = None
                assignment = UserRoleAssignment(
                    id=uuid4(),
                    user_id=user_id,
                    role_id=role.id,
                    assigned_at=now,
                    updated_at=now,
                    is_active=data.is_active,
                    effective_from=data.effective_from,
                    effective_until=data.effective_until,
                    assigned_by=assigned_by,
                )
                await uow.user_roles.create(assignment)
                operation = ChangeOperation.ASSIGN

            await record_change(
                uow,
                HistoryEntityType.USER_ROLE,
                str(assignment.id),
                operation,
                previous,
                snapshot(assignment),
                assigned_by,
                {"role_name": role.name},
            )

        await invalidate_user(self._cache, user_id)
        logger.info("Assigned role %s to user %s by %s", role.name, user_id, assigned_by)
        return assignment
