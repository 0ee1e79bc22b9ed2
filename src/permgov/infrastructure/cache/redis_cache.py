"""Redis-backed permission cache shared between processes."""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from permgov.domain.exceptions import CacheFailure

logger = logging.getLogger(__name__)


class RedisPermissionCache:
    """PermissionCache adapter over redis.asyncio. Values are stored as JSON."""

    def __init__(self, client: redis.Redis, key_prefix: str = "permgov:") -> None:
        self._client = client
        self._prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "permgov:") -> "RedisPermissionCache":
        return cls(redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(self._key(key))
        except RedisError as exc:
            raise CacheFailure(f"Cache get failed for {key}") from exc
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._client.set(self._key(key), json.dumps(value), ex=ttl)
        except RedisError as exc:
            raise CacheFailure(f"Cache set failed for {key}") from exc

    async def invalidate(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as exc:
            raise CacheFailure(f"Cache delete failed for {key}") from exc

    async def invalidate_prefix(self, prefix: str) -> None:
        try:
            keys = [k async for k in self._client.scan_iter(match=f"{self._key(prefix)}*")]
            if keys:
                await self._client.delete(*keys)
        except RedisError as exc:
            raise CacheFailure(f"Cache prefix delete failed for {prefix}") from exc
        if keys:
            logger.debug("Invalidated %d cache keys with prefix %s", len(keys), prefix)

    async def close(self) -> None:
        await self._client.aclose()
