from __future__ import annotations

from typing import Any

from jenifesto.models.entities import SourceResult
from jenifesto.sources.http import first_text, get_json

SOURCE = "gbif"
API_URL = "https://api.gbif.org/v1"
SITE_URL = "https://www.gbif.org"


def identifier_url(taxon_key: str) -> str:
    return f"{SITE_URL}/species/{taxon_key.strip()}"


def _describe(record: dict[str, Any]) -> str | None:
    parts: list[str] = []
    vernacular = first_text(record.get("vernacularName"))
    if vernacular:
        parts.append(vernacular)
    rank = record.get("rank")
    if isinstance(rank, str) and rank:
        parts.append(rank.capitalize())
    kingdom = record.get("kingdom")
    if isinstance(kingdom, str) and kingdom:
        parts.append(kingdom)
    return " · ".join(parts) or None


def _to_result(record: dict[str, Any]) -> SourceResult | None:
    key = record.get("key") or record.get("usageKey")
    if key is None:
        return None
    title = (
        first_text(record.get("canonicalName"))
        or first_text(record.get("scientificName"))
        or str(key)
    )
    return SourceResult(
        title=title,
        url=identifier_url(str(key)),
        description=_describe(record),
    )


async def fetch_species(taxon_key: str) -> SourceResult | None:
    payload = await get_json(f"{API_URL}/species/{taxon_key.strip()}", source=SOURCE)
    if not isinstance(payload, dict):
        return None
    return _to_result(payload)


async def search(query: str, limit: int) -> list[SourceResult]:
    payload = await get_json(
        f"{API_URL}/species/search",
        source=SOURCE,
        params={"q": query, "limit": limit},
    )
    records = payload.get("results", []) if isinstance(payload, dict) else []
    results = [_to_result(record) for record in records if isinstance(record, dict)]
    return [r for r in results if r is not None][:limit]
