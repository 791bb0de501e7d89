from __future__ import annotations

from jenifesto.models.entities import AggregateResult, PrimaryEntity, SessionState
from jenifesto.models.events import EventType, SSEEvent


def page_updated(page: SessionState | None) -> SSEEvent:
    return SSEEvent(
        event=EventType.PAGE_UPDATED,
        data={"page": page.model_dump(mode="json") if page else None},
    )


def primary_entity_loaded(entity: PrimaryEntity) -> SSEEvent:
    return SSEEvent(
        event=EventType.PRIMARY_ENTITY_LOADED,
        data={"entity": entity.model_dump(mode="json")},
    )


def secondary_loading(primary_id: str, sources: list[str]) -> SSEEvent:
    return SSEEvent(
        event=EventType.SECONDARY_LOADING,
        data={"primary_id": primary_id, "sources": sources},
    )


def secondary_loaded(results: AggregateResult) -> SSEEvent:
    return SSEEvent(
        event=EventType.SECONDARY_LOADED,
        data={"results": results.model_dump(mode="json")},
    )


def load_error(message: str) -> SSEEvent:
    return SSEEvent(event=EventType.LOAD_ERROR, data={"error": message})
