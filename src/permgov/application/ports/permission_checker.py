"""Permission checker port - access decisions for the transport layer."""

from typing import Protocol

from permgov.application.dto.access_dto import PermissionResult


class PermissionChecker(Protocol):
    """Port for checking whether a principal may act on a resource."""

    async def check_access(
        self,
        principal: str,
        resource: str,
        action: str,
        scope: str | None = None,
    ) -> PermissionResult: ...
