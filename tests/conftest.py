from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from jenifesto.models.entities import Identifier, SourceConfig, SourceResult
from jenifesto.services.kv_store import MemoryKeyValueStore
from jenifesto.services.ttl_cache import TTLCache
from jenifesto.sources.registry import SourceDefinition, SourceRegistry

SOURCE_TYPES = ["alpha", "beta", "gamma", "delta", "epsilon"]


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_result(title: str) -> SourceResult:
    return SourceResult(title=title, url=f"https://example.com/{title}")


def make_identifier(source_type: str, value: str = "v1") -> Identifier:
    return Identifier(type=source_type, value=value, label=f"{source_type} ID")


def make_source(
    source_type: str,
    *,
    fetch: AsyncMock | None = None,
    search: AsyncMock | None = None,
    searchable: bool = True,
) -> SourceDefinition:
    fetch = fetch or AsyncMock(return_value=make_result(f"{source_type}-record"))
    if search is None and searchable:
        search = AsyncMock(return_value=[make_result(f"{source_type}-hit")])
    return SourceDefinition(
        type=source_type,
        config=SourceConfig(name=source_type.title(), color="#123456"),
        fetch_by_identifier=fetch,
        search_by_keyword=search,
        identifier_url=lambda value, t=source_type: f"https://{t}.example.org/{value}",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cache(store, clock) -> TTLCache:
    return TTLCache(store, clock=clock)


@pytest.fixture
def sources() -> dict[str, SourceDefinition]:
    return {source_type: make_source(source_type) for source_type in SOURCE_TYPES}


@pytest.fixture
def registry(sources) -> SourceRegistry:
    return SourceRegistry(sources.values())
