from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request
from pydantic import ValidationError
from sse_starlette.sse import EventSourceResponse

from jenifesto.api.deps import Runtime, get_runtime
from jenifesto.api.dispatch import dispatch
from jenifesto.models.entities import Identifier
from jenifesto.models.schemas import (
    MESSAGE_ADAPTER,
    GetCurrentPageMessage,
    GetPrimaryEntityMessage,
    GetSecondaryResultsMessage,
    PageLoadedMessage,
    PageLoadedResponse,
    Response,
    SearchTertiaryMessage,
)
from jenifesto.services.broadcast import EventBroadcaster

router = APIRouter(prefix="/api", tags=["page"])

STREAM_POLL_SECONDS = 5.0


def _payload(response: Response) -> dict:
    """Serialize a response with only the top-level keys it actually set.

    ``{data}`` and ``{error}`` responses stay disjoint while nested results
    keep every field.
    """
    return response.model_dump(mode="json", include=response.model_fields_set)


@router.post("/messages")
async def post_message(
    payload: dict = Body(...),
    runtime: Runtime = Depends(get_runtime),
):
    """Message-passing entry point: one body, routed by its ``type``."""
    try:
        message = MESSAGE_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        )
    return _payload(await dispatch(runtime, message))


@router.post("/page", response_model=PageLoadedResponse)
async def page_loaded(
    message: PageLoadedMessage,
    background_tasks: BackgroundTasks,
    runtime: Runtime = Depends(get_runtime),
):
    """Record a navigation. The tiered pipeline runs after the response is sent."""
    background_tasks.add_task(dispatch, runtime, message)
    return PageLoadedResponse(success=True)


@router.get("/page")
async def get_current_page(runtime: Runtime = Depends(get_runtime)):
    return _payload(await dispatch(runtime, GetCurrentPageMessage()))


@router.get("/page/entity")
async def get_primary_entity(runtime: Runtime = Depends(get_runtime)):
    return _payload(await dispatch(runtime, GetPrimaryEntityMessage()))


@router.post("/page/secondary")
async def get_secondary_results(
    identifiers: dict[str, Identifier] | None = Body(default=None, embed=True),
    runtime: Runtime = Depends(get_runtime),
):
    return _payload(
        await dispatch(runtime, GetSecondaryResultsMessage(identifiers=identifiers))
    )


@router.post("/page/search")
async def search_tertiary(
    message: SearchTertiaryMessage,
    runtime: Runtime = Depends(get_runtime),
):
    return _payload(await dispatch(runtime, message))


async def event_stream(
    request: Request,
    broadcaster: EventBroadcaster,
    *,
    poll_seconds: float = STREAM_POLL_SECONDS,
) -> AsyncIterator[dict]:
    """Yield broadcast events until the client disconnects.

    Waiting on the queue is bounded by ``poll_seconds`` so a disconnect is
    noticed even when no events are flowing.
    """
    async with broadcaster.subscribe() as queue:
        while not await request.is_disconnected():
            try:
                event = await asyncio.wait_for(queue.get(), timeout=poll_seconds)
            except asyncio.TimeoutError:
                continue
            yield {"event": event.event.value, "data": json.dumps(event.data)}


@router.get("/page/events")
async def stream_events(request: Request, runtime: Runtime = Depends(get_runtime)):
    """SSE endpoint that pushes pipeline events as they happen."""
    return EventSourceResponse(event_stream(request, runtime.broadcaster))
