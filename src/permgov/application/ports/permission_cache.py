"""Permission cache port."""

from typing import Any, Protocol


class PermissionCache(Protocol):
    """Key-value store with per-entry TTL.

    Values are JSON-compatible and replaced whole on set, never mutated in
    place. get returns None on a miss.
    """

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def invalidate(self, key: str) -> None: ...

    async def invalidate_prefix(self, prefix: str) -> None: ...
