"""Bulk operation coordinator - per-item isolated batch operations."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from permgov.application.dto.bulk_dto import (
    BulkFailure,
    BulkOperationResult,
    BulkRolePermissionAssignment,
    BulkSummary,
    BulkUserRoleAssignment,
)
from permgov.application.dto.role_dto import AssignRoleInput, RolePermissionInput
from permgov.application.use_cases.role_assignment.assign_role import AssignRoleUseCase
from permgov.application.use_cases.role_assignment.revoke_role import RevokeRoleUseCase
from permgov.application.use_cases.role_permission.assign_role_permission import (
    AssignRolePermissionUseCase,
)
from permgov.domain.entities import RolePermission, UserRoleAssignment
from permgov.domain.exceptions import PermGovError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FAILED = object()


class BulkOperationCoordinator:
    """Run a single-item use case over many items.

    Each item gets its own transaction and ledger entry. A failing item is
    reported in the result and does not stop the others. At most
    `concurrency` items run at once; results keep input order.
    """

    def __init__(
        self,
        assign_role: AssignRoleUseCase,
        revoke_role: RevokeRoleUseCase,
        assign_role_permission: AssignRolePermissionUseCase,
        concurrency: int = 8,
    ) -> None:
        self._assign_role = assign_role
        self._revoke_role = revoke_role
        self._assign_role_permission = assign_role_permission
        self._concurrency = max(1, concurrency)

    async def bulk_assign_roles_to_users(
        self, data: BulkUserRoleAssignment, performed_by: str
    ) -> BulkOperationResult[UserRoleAssignment]:
        async def assign(item: dict[str, Any]) -> UserRoleAssignment:
            return await self._assign_role.execute(
                item["user_id"], AssignRoleInput(role_id=data.role_id), performed_by
            )

        items = [{"user_id": user_id, "role_id": data.role_id} for user_id in data.user_ids]
        return await self._run("assign_roles_to_users", items, assign)

    async def bulk_assign_permissions_to_role(
        self, data: BulkRolePermissionAssignment, performed_by: str
    ) -> BulkOperationResult[RolePermission]:
        async def assign(item: dict[str, Any]) -> RolePermission:
            return await self._assign_role_permission.execute(
                data.role_id,
                RolePermissionInput(permission_id=item["permission_id"]),
                performed_by,
            )

        items = [
            {"role_id": data.role_id, "permission_id": permission_id}
            for permission_id in data.permission_ids
        ]
        return await self._run("assign_permissions_to_role", items, assign)

    async def bulk_revoke_roles_from_users(
        self, data: BulkUserRoleAssignment, performed_by: str
    ) -> BulkOperationResult[dict[str, Any]]:
        async def revoke(item: dict[str, Any]) -> dict[str, Any]:
            await self._revoke_role.execute(item["user_id"], data.role_id, performed_by)
            return item

        items = [{"user_id": user_id, "role_id": data.role_id} for user_id in data.user_ids]
        return await self._run("revoke_roles_from_users", items, revoke)

    async def _run(
        self,
        name: str,
        items: list[dict[str, Any]],
        worker: Callable[[dict[str, Any]], Awaitable[T]],
    ) -> BulkOperationResult[T]:
        started = time.perf_counter()
        semaphore = asyncio.Semaphore(self._concurrency)
        failures: dict[int, BulkFailure] = {}

        async def run_one(index: int, item: dict[str, Any]) -> Any:
            async with semaphore:
                try:
                    return await worker(item)
                except PermGovError as exc:
                    logger.warning("Bulk %s item %s failed: %s", name, item, exc)
                    failures[index] = BulkFailure(item=item, error=str(exc))
                except Exception as exc:
                    logger.exception("Bulk %s item %s raised unexpectedly", name, item)
                    failures[index] = BulkFailure(item=item, error=str(exc) or type(exc).__name__)
                return _FAILED

        outcomes = await asyncio.gather(*(run_one(i, item) for i, item in enumerate(items)))

        result: BulkOperationResult[T] = BulkOperationResult(
            successful=[o for o in outcomes if o is not _FAILED],
            failed=[failures[i] for i in sorted(failures)],
        )
        result.summary = BulkSummary(
            total=len(items),
            succeeded=len(result.successful),
            failed=len(result.failed),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        logger.info(
            "Bulk %s finished: %d succeeded, %d failed of %d",
            name,
            result.summary.succeeded,
            result.summary.failed,
            result.summary.total,
        )
        return result
