from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from conftest import make_identifier
from jenifesto.api.deps import build_runtime
from jenifesto.api.dispatch import dispatch
from jenifesto.models.entities import PrimaryEntity
from jenifesto.models.schemas import (
    MESSAGE_ADAPTER,
    GetCurrentPageMessage,
    GetPrimaryEntityMessage,
    GetSecondaryResultsMessage,
    PageLoadedMessage,
    SearchTertiaryMessage,
)
from jenifesto.services.orchestrator import TieredQueryOrchestrator


@pytest.fixture
def runtime(cache, registry, store):
    fetcher = AsyncMock(
        return_value=PrimaryEntity(
            id="Q42",
            label="Douglas Adams",
            identifiers={"alpha": make_identifier("alpha"), "beta": make_identifier("beta")},
        )
    )
    orchestrator = TieredQueryOrchestrator(cache=cache, registry=registry, entity_fetcher=fetcher)
    return build_runtime(store, orchestrator=orchestrator)


@pytest.mark.asyncio
async def test_current_page_is_none_before_navigation(runtime):
    response = await dispatch(runtime, GetCurrentPageMessage())

    assert response.page is None


@pytest.mark.asyncio
async def test_page_loaded_then_current_page(runtime):
    loaded = await dispatch(runtime, PageLoadedMessage(title="Douglas Adams", url="u", primary_id="Q42"))
    response = await dispatch(runtime, GetCurrentPageMessage())

    assert loaded.success is True
    assert response.page.primary_id == "Q42"
    assert response.page.tier2_satisfied_sources == ["alpha", "beta"]


@pytest.mark.asyncio
async def test_primary_entity_requires_active_page(runtime):
    response = await dispatch(runtime, GetPrimaryEntityMessage())

    assert response.data is None
    assert response.error == "No primary identifier available"


@pytest.mark.asyncio
async def test_primary_entity_for_current_page(runtime):
    await runtime.sessions.navigate("Douglas Adams", "u", "Q42")

    response = await dispatch(runtime, GetPrimaryEntityMessage())

    assert response.error is None
    assert response.data.identifiers["alpha"].url == "https://alpha.example.org/v1"


@pytest.mark.asyncio
async def test_secondary_requires_identifiers(runtime):
    response = await dispatch(runtime, GetSecondaryResultsMessage(identifiers={}))

    assert response.error == "No identifiers provided"


@pytest.mark.asyncio
async def test_secondary_results(runtime):
    await runtime.sessions.navigate("Douglas Adams", "u", "Q42")

    response = await dispatch(
        runtime, GetSecondaryResultsMessage(identifiers={"gamma": make_identifier("gamma")})
    )

    assert set(response.results.successful) == {"gamma"}
    assert "alpha" in response.results.skipped


@pytest.mark.asyncio
async def test_search_excludes_sources_satisfied_at_tier2(runtime, sources):
    await dispatch(runtime, PageLoadedMessage(title="Douglas Adams", url="u", primary_id="Q42"))

    response = await dispatch(runtime, SearchTertiaryMessage(query="hitchhiker"))

    sources["alpha"].search_by_keyword.assert_not_awaited()
    sources["beta"].search_by_keyword.assert_not_awaited()
    assert set(response.results.successful) == {"gamma", "delta", "epsilon"}


@pytest.mark.asyncio
async def test_search_requires_query(runtime):
    response = await dispatch(runtime, SearchTertiaryMessage(query="  "))

    assert response.error == "No query provided"


def test_message_adapter_routes_by_type():
    message = MESSAGE_ADAPTER.validate_python({"type": "SEARCH_TERTIARY", "query": "fox"})

    assert isinstance(message, SearchTertiaryMessage)
    assert message.query == "fox"


@pytest.mark.asyncio
async def test_current_page_survives_restart(tmp_path, registry):
    from jenifesto.services.kv_store import FileKeyValueStore

    before = build_runtime(FileKeyValueStore(tmp_path), registry=registry)
    await dispatch(before, PageLoadedMessage(title="Main Page", url="https://w/Main_Page"))
    recorded = (await dispatch(before, GetCurrentPageMessage())).page

    after = build_runtime(FileKeyValueStore(tmp_path), registry=registry)
    await after.sessions.restore()
    restored = (await dispatch(after, GetCurrentPageMessage())).page

    assert restored is not None
    assert restored.model_dump() == recorded.model_dump()
