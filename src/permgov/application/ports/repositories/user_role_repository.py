"""User role assignment repository port."""

from typing import Protocol
from uuid import UUID

from permgov.domain.entities import UserRoleAssignment


class UserRoleRepository(Protocol):
    """Port for user to role assignments."""

    async def get_by_id(self, assignment_id: UUID) -> UserRoleAssignment | None: ...

    async def get(self, user_id: str, role_id: UUID) -> UserRoleAssignment | None: ...

    async def list_by_user(self, user_id: str) -> list[UserRoleAssignment]: ...

    async def list_user_ids_by_role(self, role_id: UUID) -> list[str]: ...

    async def create(self, assignment: UserRoleAssignment) -> UserRoleAssignment: ...

    async def update(self, assignment: UserRoleAssignment) -> None: ...

    async def delete(self, assignment_id: UUID) -> None: ...
