"""Permission checker implementation - checks against the effective permission set."""

from permgov.application.dto.access_dto import PermissionResult
from permgov.application.use_cases.effective.effective_permission_calculator import (
    EffectivePermissionCalculator,
)
from permgov.domain.entities import EffectivePermission
from permgov.domain.value_objects import PermissionSource, scope_covers


def _matches(perm: EffectivePermission, resource: str, action: str, scope: str | None) -> bool:
    if perm.resource != resource or perm.action != action:
        return False
    return scope_covers(perm.scope, scope)


class EffectivePermissionChecker:
    """Checks principal access using the calculator's merged result."""

    def __init__(self, calculator: EffectivePermissionCalculator) -> None:
        self._calculator = calculator

    async def check_access(
        self,
        principal: str,
        resource: str,
        action: str,
        scope: str | None = None,
    ) -> PermissionResult:
        """Check if principal may perform action on resource.

        Any granted permission whose scope covers the requested one allows
        access; a wider scope covers a narrower one and scope=None matches
        every scope. A user deny blocks only its own permission, so it is
        reported only when no matching grant exists.
        """
        effective = await self._calculator.calculate(principal)

        for perm in effective.permissions.values():
            if not _matches(perm, resource, action, scope):
                continue
            if perm.source == PermissionSource.USER:
                reason = f"Direct permission: {perm.code}"
            else:
                reason = f"Granted by role {perm.role_name}: {perm.code}"
            return PermissionResult(
                has_permission=True,
                reason=reason,
                source=perm.source,
                permission_id=perm.permission_id,
                code=perm.code,
                role_name=perm.role_name,
                valid_until=perm.valid_until,
                conditions=perm.conditions,
            )

        for perm in effective.denied.values():
            if _matches(perm, resource, action, scope):
                return PermissionResult(
                    has_permission=False,
                    reason=f"Explicit user deny: {perm.code}",
                    source=PermissionSource.USER,
                    permission_id=perm.permission_id,
                    code=perm.code,
                    valid_until=perm.valid_until,
                )

        return PermissionResult(has_permission=False, reason="No matching permission found")
