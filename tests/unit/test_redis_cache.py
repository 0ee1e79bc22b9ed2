"""Unit tests for RedisPermissionCache against a mocked client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from permgov.domain.exceptions import CacheFailure
from permgov.infrastructure.cache.redis_cache import RedisPermissionCache


def _scan(keys):
    async def iterate():
        for key in keys:
            yield key

    return MagicMock(return_value=iterate())


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def redis_cache(client) -> RedisPermissionCache:
    return RedisPermissionCache(client, key_prefix="pg:")


@pytest.mark.asyncio
async def test_set_serializes_with_ttl(redis_cache, client) -> None:
    await redis_cache.set("permissions:user:u1", {"a": [1]}, 3600)
    client.set.assert_awaited_once_with("pg:permissions:user:u1", '{"a": [1]}', ex=3600)


@pytest.mark.asyncio
async def test_get_deserializes(redis_cache, client) -> None:
    client.get.return_value = '{"a": 1}'
    assert await redis_cache.get("k") == {"a": 1}
    client.get.assert_awaited_once_with("pg:k")

    client.get.return_value = None
    assert await redis_cache.get("k") is None


@pytest.mark.asyncio
async def test_invalidate_prefix_scans_and_deletes(redis_cache, client) -> None:
    client.scan_iter = _scan(["pg:user-roles:u1", "pg:user-roles:u2"])

    await redis_cache.invalidate_prefix("user-roles:")

    client.scan_iter.assert_called_once_with(match="pg:user-roles:*")
    client.delete.assert_awaited_once_with("pg:user-roles:u1", "pg:user-roles:u2")


@pytest.mark.asyncio
async def test_invalidate_prefix_without_matches(redis_cache, client) -> None:
    client.scan_iter = _scan([])
    await redis_cache.invalidate_prefix("user-roles:")
    client.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_redis_errors_become_cache_failures(redis_cache, client) -> None:
    client.get.side_effect = RedisConnectionError("down")
    with pytest.raises(CacheFailure) as exc_info:
        await redis_cache.get("k")
    assert isinstance(exc_info.value.__cause__, RedisConnectionError)

    client.delete.side_effect = RedisConnectionError("down")
    with pytest.raises(CacheFailure):
        await redis_cache.invalidate("k")


@pytest.mark.asyncio
async def test_close(redis_cache, client) -> None:
    await redis_cache.close()
    client.aclose.assert_awaited_once()
