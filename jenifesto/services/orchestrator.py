from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping

from loguru import logger
from pydantic import ValidationError

from jenifesto.config import settings
from jenifesto.models.entities import (
    AggregateResult,
    Identifier,
    PrimaryEntity,
    SourceConfig,
    SourceFailure,
    SourceResult,
)
from jenifesto.services.errors import EntityFetchError
from jenifesto.services.logger import log_cache_operation, log_source_call
from jenifesto.services.ttl_cache import TTLCache, make_key
from jenifesto.sources import wikidata
from jenifesto.sources.registry import SourceRegistry, default_registry

EntityFetcher = Callable[[str], Awaitable[PrimaryEntity]]

TIER_PRIMARY = "primary"
TIER_SECONDARY = "secondary"
TIER_SEARCH = "search"


@dataclass(slots=True)
class SourceRequest:
    """A queryable request: one source, one argument, one capability call."""

    type: str
    operation: str
    call: Callable[[], Awaitable[Any]]


def normalize_keyword(keyword: str) -> str:
    return " ".join(keyword.split()).strip()


def _error_message(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


def _with_config(
    payload: Any,
    config: SourceConfig,
    limit: int | None = None,
) -> SourceResult | list[SourceResult]:
    """Attach display metadata to a single result or to a bounded list of them."""
    if isinstance(payload, list):
        items = payload[:limit] if limit else payload
        return [_with_config(item, config) for item in items]
    if not isinstance(payload, (SourceResult, dict)):
        raise TypeError(f"{type(payload).__name__} is not a source result")
    result = SourceResult.model_validate(payload)
    return result.model_copy(update={"source_config": config})


class TieredQueryOrchestrator:
    """Cached, fan-out retrieval over the primary entity and the registered sources.

    Tier 1 fetches the primary entity. Tier 2 fans out to every source the
    entity has an identifier for. Tier 3 fans out a keyword search to the
    searchable sources not already satisfied at tier 2.

    A fan-out launches every queryable request at once, waits for all of them
    to settle and reduces the outcomes. A failing source never affects the
    others and never fails the call.
    """

    def __init__(
        self,
        *,
        cache: TTLCache,
        registry: SourceRegistry | None = None,
        entity_fetcher: EntityFetcher | None = None,
        primary_ttl_seconds: float | None = None,
        secondary_ttl_seconds: float | None = None,
        search_ttl_seconds: float | None = None,
        search_limit: int | None = None,
    ):
        self.cache = cache
        self.registry = registry or default_registry()
        self.entity_fetcher = entity_fetcher or wikidata.fetch_entity
        self.primary_ttl_seconds = (
            settings.primary_cache_ttl_seconds if primary_ttl_seconds is None else primary_ttl_seconds
        )
        self.secondary_ttl_seconds = (
            settings.secondary_cache_ttl_seconds
            if secondary_ttl_seconds is None
            else secondary_ttl_seconds
        )
        self.search_ttl_seconds = (
            settings.search_cache_ttl_seconds if search_ttl_seconds is None else search_ttl_seconds
        )
        self.search_limit = max(int(search_limit or settings.search_result_limit), 1)

    # Tier 1

    async def fetch_primary_entity(self, primary_id: str) -> PrimaryEntity:
        if not wikidata.is_valid_qid(primary_id):
            raise EntityFetchError(f"Invalid entity identifier: {primary_id!r}")

        cache_key = make_key(TIER_PRIMARY, primary_id)
        cached = await self._cached(cache_key, TIER_PRIMARY, PrimaryEntity)
        if cached is not None:
            return cached

        logger.info(f"Primary entity cache miss, fetching: {primary_id}")
        try:
            entity = await self.entity_fetcher(primary_id)
        except EntityFetchError:
            raise
        except Exception as e:
            raise EntityFetchError(f"Failed to fetch {primary_id}: {_error_message(e)}") from e
        if not isinstance(entity, PrimaryEntity):
            raise EntityFetchError(f"Malformed entity returned for {primary_id}")

        entity = self._attach_identifier_urls(entity)
        await self.cache.set(cache_key, entity.model_dump(mode="json"), self.primary_ttl_seconds)
        return entity

    def _attach_identifier_urls(self, entity: PrimaryEntity) -> PrimaryEntity:
        identifiers: dict[str, Identifier] = {}
        for source_type, identifier in entity.identifiers.items():
            url = self.registry.identifier_url(source_type, identifier.value)
            if url is None and source_type not in self.registry:
                url = identifier.url
            identifiers[source_type] = identifier.model_copy(update={"url": url})
        return entity.model_copy(update={"identifiers": identifiers})

    # Tier 2

    async def fetch_secondary_results(
        self,
        primary_id: str | None,
        identifiers: Mapping[str, Identifier],
    ) -> AggregateResult:
        # Without a primary id there is no stable key for this identifier set.
        cache_key = make_key(TIER_SECONDARY, primary_id) if primary_id else None
        if cache_key is not None:
            cached = await self._cached(cache_key, TIER_SECONDARY, AggregateResult)
            if cached is not None:
                return cached

        logger.info(f"Secondary cache miss, querying sources for {primary_id}")
        requests: list[SourceRequest] = []
        skipped: list[str] = []
        for source in self.registry:
            identifier = identifiers.get(source.type)
            if identifier is None or not identifier.value:
                skipped.append(source.type)
                continue
            requests.append(
                SourceRequest(
                    type=source.type,
                    operation="fetch_by_identifier",
                    call=lambda fetch=source.fetch_by_identifier, value=identifier.value: fetch(value),
                )
            )

        results = await self._fan_out(requests, skipped)

        if cache_key is not None:
            await self.cache.set(cache_key, results.model_dump(mode="json"), self.secondary_ttl_seconds)
        return results

    # Tier 3

    async def search_tertiary(
        self,
        keyword: str,
        exclude_sources: Iterable[str] = (),
        limit: int | None = None,
    ) -> AggregateResult:
        query = normalize_keyword(keyword or "")
        if not query:
            raise ValueError("No query provided")
        limit = max(int(limit or self.search_limit), 1)
        excluded = sorted(set(exclude_sources))

        cache_key = make_key(TIER_SEARCH, query.casefold(), excluded, limit)
        cached = await self._cached(cache_key, TIER_SEARCH, AggregateResult)
        if cached is not None:
            return cached

        logger.info(f"Search cache miss, searching: {query} (excluding {excluded})")
        requests: list[SourceRequest] = []
        skipped: list[str] = []
        for source in self.registry:
            if source.search_by_keyword is None or source.type in excluded:
                skipped.append(source.type)
                continue
            requests.append(
                SourceRequest(
                    type=source.type,
                    operation="search_by_keyword",
                    call=lambda search=source.search_by_keyword: search(query, limit),
                )
            )

        results = await self._fan_out(requests, skipped, limit=limit)
        await self.cache.set(cache_key, results.model_dump(mode="json"), self.search_ttl_seconds)
        return results

    # Fan-out

    async def _fan_out(
        self,
        requests: list[SourceRequest],
        skipped: list[str],
        *,
        limit: int | None = None,
    ) -> AggregateResult:
        """Launch every request, join on all of them, reduce into one aggregate."""
        results = AggregateResult(skipped=list(skipped))
        settled = await asyncio.gather(
            *(self._run_request(request) for request in requests),
            return_exceptions=True,
        )

        for request, outcome in zip(requests, settled):
            if isinstance(outcome, Exception):
                results.failed[request.type] = SourceFailure.error(_error_message(outcome))
                continue
            if isinstance(outcome, BaseException):
                raise outcome

            if outcome is None or outcome == []:
                results.failed[request.type] = SourceFailure.not_found()
                continue
            config = self.registry.source_config(request.type)
            try:
                results.successful[request.type] = _with_config(outcome, config, limit)
            except (TypeError, ValidationError) as e:
                results.failed[request.type] = SourceFailure.error(f"Unexpected payload: {e}")

        logger.info(
            f"Fan-out settled: {len(results.successful)} successful, "
            f"{len(results.failed)} failed, {len(results.skipped)} skipped"
        )
        return results

    async def _run_request(self, request: SourceRequest) -> Any:
        started = time.monotonic()
        try:
            # The call is made inside this coroutine so a synchronous raise is
            # captured by gather like any other failure.
            payload = await request.call()
        except Exception as e:
            log_source_call(
                request.type,
                request.operation,
                duration_ms=int((time.monotonic() - started) * 1000),
                status="failed",
                error=_error_message(e),
            )
            raise
        log_source_call(
            request.type,
            request.operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            status="success" if payload else "not_found",
        )
        return payload

    # Cache

    async def _cached(self, cache_key: str, tier: str, model: Any) -> Any | None:
        raw = await self.cache.get(cache_key)
        if raw is None:
            log_cache_operation(tier, cache_key, "miss")
            return None
        try:
            value = model.model_validate(raw)
        except ValidationError as e:
            log_cache_operation(tier, cache_key, "invalid", error=str(e))
            return None
        log_cache_operation(tier, cache_key, "hit")
        return value
