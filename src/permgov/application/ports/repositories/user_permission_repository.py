"""User permission grant repository port."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from permgov.domain.entities import UserPermissionGrant


class UserPermissionRepository(Protocol):
    """Port for direct user grants and denials."""

    async def get_by_id(self, grant_id: UUID) -> UserPermissionGrant | None: ...

    async def get(self, user_id: str, permission_id: UUID) -> UserPermissionGrant | None: ...

    async def list_by_user(self, user_id: str) -> list[UserPermissionGrant]: ...

    async def list_expired_temporary(self, now: datetime) -> list[UserPermissionGrant]: ...

    async def create(self, grant: UserPermissionGrant) -> UserPermissionGrant: ...

    async def create_batch(self, grants: list[UserPermissionGrant]) -> list[UserPermissionGrant]: ...

    async def update(self, grant: UserPermissionGrant) -> None: ...

    async def delete(self, grant_id: UUID) -> None: ...

    async def list(
        self,
        user_id: str,
        *,
        is_granted: bool | None = None,
        is_temporary: bool | None = None,
        active_at: datetime | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[UserPermissionGrant], int]: ...
