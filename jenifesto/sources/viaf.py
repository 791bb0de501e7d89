from __future__ import annotations

from typing import Any

from jenifesto.models.entities import SourceResult
from jenifesto.services.errors import SourceFetchError
from jenifesto.sources.http import first_text, get_json

SOURCE = "viaf"
BASE_URL = "https://viaf.org/viaf"

NAME_TYPES = {
    "Personal": "Personal name authority record",
    "Corporate": "Corporate name authority record",
    "Geographic": "Geographic name authority record",
    "UniformTitleWork": "Work authority record",
    "UniformTitleExpression": "Expression authority record",
}


def identifier_url(viaf_id: str) -> str:
    return f"{BASE_URL}/{viaf_id.strip()}/"


def _main_heading(payload: dict[str, Any]) -> str | None:
    headings = payload.get("mainHeadings")
    if not isinstance(headings, dict):
        return None
    data = headings.get("data")
    # A single heading is returned as an object rather than a one-element list.
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return None
    for heading in data:
        if isinstance(heading, dict):
            text = first_text(heading.get("text"))
            if text:
                return text
    return None


async def fetch_record(viaf_id: str) -> SourceResult | None:
    viaf_id = viaf_id.strip()
    if not viaf_id.isdigit():
        raise SourceFetchError(SOURCE, f"Invalid VIAF ID: {viaf_id}")

    payload = await get_json(f"{BASE_URL}/{viaf_id}/viaf.json", source=SOURCE)
    if not isinstance(payload, dict):
        return None

    title = _main_heading(payload)
    if title is None:
        return None

    name_type = payload.get("nameType")
    return SourceResult(
        title=title,
        url=identifier_url(viaf_id),
        description=NAME_TYPES.get(name_type) if isinstance(name_type, str) else None,
    )
