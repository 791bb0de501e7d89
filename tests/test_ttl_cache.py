from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from jenifesto.services.errors import CacheUnavailable
from jenifesto.services.ttl_cache import TTLCache, make_key


@pytest.mark.asyncio
async def test_returns_value_before_expiry(cache, clock):
    await cache.set("k", {"a": 1}, ttl_seconds=60)
    clock.advance(59)

    assert await cache.get("k") == {"a": 1}


@pytest.mark.asyncio
async def test_expired_entry_is_a_miss(cache, clock, store):
    await cache.set("k", {"a": 1}, ttl_seconds=60)
    clock.advance(60)

    assert await cache.get("k") is None
    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_missing_key_is_a_miss(cache):
    assert await cache.get("nope") is None


@pytest.mark.asyncio
async def test_non_positive_ttl_is_not_stored(cache, store):
    await cache.set("k", "v", ttl_seconds=0)

    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_garbage_entry_is_a_miss(cache, store):
    await store.set("k", "not-an-entry")
    await store.set("k2", {"value": 1, "expires_at": "tomorrow"})

    assert await cache.get("k") is None
    assert await cache.get("k2") is None


@pytest.mark.asyncio
async def test_set_overwrites_last_write_wins(cache):
    await cache.set("k", "first", ttl_seconds=60)
    await cache.set("k", "second", ttl_seconds=60)

    assert await cache.get("k") == "second"


@pytest.mark.asyncio
async def test_unavailable_store_degrades_silently():
    store = MagicMock()
    store.get = AsyncMock(side_effect=CacheUnavailable("unreachable"))
    store.set = AsyncMock(side_effect=CacheUnavailable("unreachable"))
    cache = TTLCache(store)

    await cache.set("k", "v", ttl_seconds=60)
    assert await cache.get("k") is None


def test_make_key_is_structured():
    assert make_key("primary", "Q42") == '["cache","primary","Q42"]'
    assert make_key("search", "fox", ["a", "b"]) != make_key("search", "fox,a", ["b"])
