"""Role repository port."""

from typing import Protocol
from uuid import UUID

from permgov.domain.entities import Role


class RoleRepository(Protocol):
    """Port for read access to roles."""

    async def get_by_id(self, role_id: UUID) -> Role | None: ...

    async def get_by_code(self, code: str) -> Role | None: ...

    async def list_by_ids(self, role_ids: list[UUID]) -> list[Role]: ...

    async def list_all(self, include_inactive: bool = False) -> list[Role]: ...
