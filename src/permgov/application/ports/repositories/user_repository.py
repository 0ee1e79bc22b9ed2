"""User directory port - users are owned outside this engine."""

from typing import Protocol


class UserRepository(Protocol):
    """Read-only lookup of user existence."""

    async def exists(self, user_id: str) -> bool: ...
