from __future__ import annotations

import json
import time
from typing import Any, Callable

from jenifesto.services.errors import CacheUnavailable
from jenifesto.services.kv_store import KeyValueStore
from jenifesto.services.logger import log_cache_operation

KEY_PREFIX = "cache"


def make_key(*parts: Any) -> str:
    """Build a composite cache key.

    The parts are JSON-encoded as an array, so no value can collide with
    another by containing a separator character.
    """
    return json.dumps([KEY_PREFIX, *parts], ensure_ascii=True, separators=(",", ":"))


class TTLCache:
    """Freshness cache over a key-value store.

    Expiry is checked lazily when an entry is read. Storage failures degrade
    to a cache miss on read and to a no-op on write.
    """

    def __init__(self, store: KeyValueStore, *, clock: Callable[[], float] = time.time):
        self._store = store
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        try:
            entry = await self._store.get(key)
        except CacheUnavailable as e:
            log_cache_operation("read", key, "degraded", error=str(e))
            return None

        if not isinstance(entry, dict):
            return None
        expires_at = entry.get("expires_at")
        if not isinstance(expires_at, (int, float)):
            return None
        if self._clock() >= expires_at:
            await self._discard(key)
            return None
        return entry.get("value")

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        entry = {"value": value, "expires_at": self._clock() + ttl_seconds}
        try:
            await self._store.set(key, entry)
        except CacheUnavailable as e:
            log_cache_operation("write", key, "degraded", error=str(e))

    async def _discard(self, key: str) -> None:
        try:
            await self._store.delete(key)
        except CacheUnavailable as e:
            log_cache_operation("evict", key, "degraded", error=str(e))
