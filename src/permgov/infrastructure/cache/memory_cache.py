"""In-process permission cache over cachetools."""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any

from cachetools import TLRUCache

logger = logging.getLogger(__name__)


def _expires_at(key: str, value: tuple[int, str], now: float) -> float:
    ttl, _ = value
    return now + ttl


class InMemoryPermissionCache:
    """PermissionCache adapter for a single process.

    Each entry carries its own TTL. Values are stored serialized, so callers
    always get a fresh copy and can never mutate what is cached.
    """

    def __init__(self, maxsize: int = 10000, timer: Callable[[], float] = time.monotonic) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=timer)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        return json.loads(entry[1])

    async def set(self, key: str, value: Any, ttl: int) -> None:
        payload = json.dumps(value)
        async with self._lock:
            self._entries[key] = (ttl, payload)

    async def invalidate(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def invalidate_prefix(self, prefix: str) -> None:
        async with self._lock:
            keys = [k for k in list(self._entries.keys()) if k.startswith(prefix)]
            for key in keys:
                self._entries.pop(key, None)
        if keys:
            logger.debug("Invalidated %d cache keys with prefix %s", len(keys), prefix)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
