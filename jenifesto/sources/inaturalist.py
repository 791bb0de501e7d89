from __future__ import annotations

from typing import Any

from jenifesto.models.entities import SourceResult
from jenifesto.sources.http import first_text, get_json

SOURCE = "inaturalist"
API_URL = "https://api.inaturalist.org/v1"
SITE_URL = "https://www.inaturalist.org"


def identifier_url(taxon_id: str) -> str:
    return f"{SITE_URL}/taxa/{taxon_id.strip()}"


def _to_result(taxon: dict[str, Any]) -> SourceResult | None:
    taxon_id = taxon.get("id")
    if taxon_id is None:
        return None
    name = first_text(taxon.get("name")) or str(taxon_id)
    common_name = first_text(taxon.get("preferred_common_name"))
    rank = taxon.get("rank") if isinstance(taxon.get("rank"), str) else None

    description = None
    if common_name:
        description = f"{rank.capitalize()} {name}" if rank else name
    elif rank:
        description = rank.capitalize()

    photo = taxon.get("default_photo") or {}
    thumbnail = None
    if isinstance(photo, dict):
        thumbnail = photo.get("medium_url") or photo.get("square_url")

    return SourceResult(
        title=common_name or name,
        url=identifier_url(str(taxon_id)),
        description=description,
        thumbnail=thumbnail,
    )


async def fetch_taxon(taxon_id: str) -> SourceResult | None:
    payload = await get_json(f"{API_URL}/taxa/{taxon_id.strip()}", source=SOURCE)
    taxa = payload.get("results", []) if isinstance(payload, dict) else []
    if not taxa or not isinstance(taxa[0], dict):
        return None
    return _to_result(taxa[0])


async def search(query: str, limit: int) -> list[SourceResult]:
    payload = await get_json(
        f"{API_URL}/taxa",
        source=SOURCE,
        params={"q": query, "per_page": limit},
    )
    taxa = payload.get("results", []) if isinstance(payload, dict) else []
    results = [_to_result(taxon) for taxon in taxa if isinstance(taxon, dict)]
    return [r for r in results if r is not None][:limit]
