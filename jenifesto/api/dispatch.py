from __future__ import annotations

from loguru import logger

from jenifesto.api.deps import Runtime
from jenifesto.models.schemas import (
    AggregateResultResponse,
    CurrentPageResponse,
    GetCurrentPageMessage,
    GetPrimaryEntityMessage,
    GetSecondaryResultsMessage,
    Message,
    PageLoadedMessage,
    PageLoadedResponse,
    PrimaryEntityResponse,
    Response,
    SearchTertiaryMessage,
)


async def dispatch(runtime: Runtime, message: Message) -> Response:
    """Route one presentation-layer message to its handler."""
    logger.debug(f"Received message: {message.type}")

    if isinstance(message, PageLoadedMessage):
        result = await runtime.navigation.handle_page_loaded(
            message.title, message.url, message.primary_id
        )
        return PageLoadedResponse(success=bool(result.get("success")))

    if isinstance(message, GetCurrentPageMessage):
        return CurrentPageResponse(page=runtime.sessions.current)

    if isinstance(message, GetPrimaryEntityMessage):
        page = runtime.sessions.current
        if page is None or not page.primary_id:
            return PrimaryEntityResponse(error="No primary identifier available")
        try:
            entity = await runtime.orchestrator.fetch_primary_entity(page.primary_id)
        except Exception as e:
            return PrimaryEntityResponse(error=str(e) or e.__class__.__name__)
        return PrimaryEntityResponse(data=entity)

    if isinstance(message, GetSecondaryResultsMessage):
        if not message.identifiers:
            return AggregateResultResponse(error="No identifiers provided")
        page = runtime.sessions.current
        try:
            results = await runtime.orchestrator.fetch_secondary_results(
                page.primary_id if page else None, message.identifiers
            )
        except Exception as e:
            return AggregateResultResponse(error=str(e) or e.__class__.__name__)
        return AggregateResultResponse(results=results)

    if isinstance(message, SearchTertiaryMessage):
        if not message.query or not message.query.strip():
            return AggregateResultResponse(error="No query provided")
        try:
            results = await runtime.orchestrator.search_tertiary(
                message.query,
                runtime.sessions.satisfied_sources(),
                message.limit,
            )
        except Exception as e:
            return AggregateResultResponse(error=str(e) or e.__class__.__name__)
        return AggregateResultResponse(results=results)

    raise ValueError(f"Unsupported message type: {getattr(message, 'type', message)!r}")
