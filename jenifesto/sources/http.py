from __future__ import annotations

from typing import Any

import httpx

from jenifesto.config import settings
from jenifesto.services.errors import SourceFetchError


async def get_json(
    url: str,
    *,
    source: str,
    params: dict[str, Any] | None = None,
) -> Any | None:
    """GET a JSON document from a source API.

    Returns None when the source answers 404. Any other failure is raised as
    SourceFetchError so that the caller can fold it into its aggregate.
    """
    try:
        async with httpx.AsyncClient(
            timeout=settings.source_request_timeout_seconds,
            follow_redirects=True,
        ) as client:
            response = await client.get(
                url,
                params=params,
                headers={
                    "Accept": "application/json",
                    "User-Agent": settings.http_user_agent,
                },
            )
    except httpx.TimeoutException as e:
        raise SourceFetchError(source, f"{source} request timed out") from e
    except httpx.HTTPError as e:
        raise SourceFetchError(source, f"{source} request failed: {e}") from e

    if response.status_code == 404:
        return None
    if response.status_code >= 400:
        raise SourceFetchError(source, f"{source} returned HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise SourceFetchError(source, f"{source} returned invalid JSON") from e


def first_text(value: Any) -> str | None:
    """Collapse the string/list/{"value": ...} shapes sources use for text fields."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("value") or value.get("text")
    if not isinstance(value, str):
        return None
    cleaned = " ".join(value.split()).strip()
    return cleaned or None


def truncate(text: str | None, limit: int = 300) -> str | None:
    if not text or len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"
