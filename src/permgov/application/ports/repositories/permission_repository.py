"""Permission catalog repository port."""

from typing import Protocol
from uuid import UUID

from permgov.domain.entities import Permission


class PermissionRepository(Protocol):
    """Port for read access to the permission catalog."""

    async def get_by_id(self, permission_id: UUID) -> Permission | None: ...

    async def get_by_code(self, code: str) -> Permission | None: ...

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]: ...

    async def list(
        self,
        *,
        resource: str | None = None,
        action: str | None = None,
        include_inactive: bool = False,
    ) -> list[Permission]: ...
