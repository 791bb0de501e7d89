from __future__ import annotations

from urllib.parse import quote

from jenifesto.models.entities import SourceResult
from jenifesto.sources.http import first_text, get_json, truncate

SOURCE = "internet_archive"
BASE_URL = "https://archive.org"


def identifier_url(identifier: str) -> str:
    return f"{BASE_URL}/details/{quote(identifier.strip(), safe='')}"


def _thumbnail_url(identifier: str) -> str:
    return f"{BASE_URL}/services/img/{quote(identifier, safe='')}"


async def fetch_item(identifier: str) -> SourceResult | None:
    """Fetch item metadata. The metadata API answers unknown items with ``{}``."""
    identifier = identifier.strip()
    payload = await get_json(
        f"{BASE_URL}/metadata/{quote(identifier, safe='')}",
        source=SOURCE,
    )
    if not isinstance(payload, dict):
        return None
    metadata = payload.get("metadata")
    if not isinstance(metadata, dict) or not metadata:
        return None

    return SourceResult(
        title=first_text(metadata.get("title")) or identifier,
        url=identifier_url(identifier),
        description=truncate(first_text(metadata.get("description"))),
        thumbnail=_thumbnail_url(identifier),
    )


async def search(query: str, limit: int) -> list[SourceResult]:
    payload = await get_json(
        f"{BASE_URL}/advancedsearch.php",
        source=SOURCE,
        params={
            "q": query,
            "fl[]": ["identifier", "title", "description", "mediatype"],
            "rows": limit,
            "page": 1,
            "output": "json",
        },
    )
    response = payload.get("response", {}) if isinstance(payload, dict) else {}
    docs = response.get("docs", []) if isinstance(response, dict) else []

    results: list[SourceResult] = []
    for doc in docs[:limit]:
        identifier = doc.get("identifier")
        if not isinstance(identifier, str) or not identifier:
            continue
        results.append(
            SourceResult(
                title=first_text(doc.get("title")) or identifier,
                url=identifier_url(identifier),
                description=truncate(first_text(doc.get("description"))),
                thumbnail=_thumbnail_url(identifier),
            )
        )
    return results
