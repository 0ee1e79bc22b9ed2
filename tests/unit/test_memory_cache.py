"""Unit tests for InMemoryPermissionCache."""

import pytest

from permgov.infrastructure.cache.memory_cache import InMemoryPermissionCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> InMemoryPermissionCache:
    return InMemoryPermissionCache(maxsize=100, timer=clock)


@pytest.mark.asyncio
async def test_get_missing_returns_none(memory_cache) -> None:
    assert await memory_cache.get("nope") is None


@pytest.mark.asyncio
async def test_entry_expires_after_its_own_ttl(memory_cache, clock) -> None:
    await memory_cache.set("short", {"v": 1}, 10)
    await memory_cache.set("long", {"v": 2}, 100)

    clock.now = 9
    assert await memory_cache.get("short") == {"v": 1}

    clock.now = 11
    assert await memory_cache.get("short") is None
    assert await memory_cache.get("long") == {"v": 2}


@pytest.mark.asyncio
async def test_returned_values_are_copies(memory_cache) -> None:
    await memory_cache.set("k", {"items": [1]}, 60)
    value = await memory_cache.get("k")
    value["items"].append(2)
    assert await memory_cache.get("k") == {"items": [1]}


@pytest.mark.asyncio
async def test_invalidate_and_prefix(memory_cache) -> None:
    await memory_cache.set("user-permissions:list:u1:p=1", [1], 60)
    await memory_cache.set("user-permissions:list:u1:p=2", [2], 60)
    await memory_cache.set("user-permissions:list:u10:p=1", [3], 60)
    await memory_cache.set("permissions:user:u1", {}, 60)

    await memory_cache.invalidate_prefix("user-permissions:list:u1:")
    assert await memory_cache.get("user-permissions:list:u1:p=1") is None
    assert await memory_cache.get("user-permissions:list:u1:p=2") is None
    assert await memory_cache.get("user-permissions:list:u10:p=1") == [3]

    await memory_cache.invalidate("permissions:user:u1")
    assert await memory_cache.get("permissions:user:u1") is None
    await memory_cache.invalidate("never-set")


@pytest.mark.asyncio
async def test_clear(memory_cache) -> None:
    await memory_cache.set("a", 1, 60)
    await memory_cache.clear()
    assert await memory_cache.get("a") is None
