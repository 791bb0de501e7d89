from __future__ import annotations

import re
from typing import Any

from jenifesto.config import settings
from jenifesto.models.entities import Identifier, PrimaryEntity
from jenifesto.services.errors import EntityFetchError, SourceFetchError
from jenifesto.sources.http import first_text, get_json

SOURCE = "wikidata"
QID_PATTERN = re.compile(r"^Q[1-9]\d*$")

# Wikidata property -> (source type, display label)
IDENTIFIER_PROPERTIES: dict[str, tuple[str, str]] = {
    "P648": ("openlibrary", "Open Library ID"),
    "P724": ("internet_archive", "Internet Archive ID"),
    "P214": ("viaf", "VIAF ID"),
    "P846": ("gbif", "GBIF taxon ID"),
    "P3151": ("inaturalist", "iNaturalist taxon ID"),
}


def is_valid_qid(qid: object) -> bool:
    return isinstance(qid, str) and bool(QID_PATTERN.match(qid))


def entity_url(qid: str) -> str:
    return f"{settings.wikidata_base_url}/wiki/{qid}"


def _language_value(values: Any, language: str = "en") -> str | None:
    if not isinstance(values, dict):
        return None
    entry = values.get(language)
    if entry is None and values:
        entry = next(iter(values.values()))
    return first_text(entry)


def _claim_value(claims: Any, prop: str) -> str | None:
    """Return the first string value of a property, preferring preferred-rank claims."""
    if not isinstance(claims, dict):
        return None
    statements = claims.get(prop)
    if not isinstance(statements, list):
        return None
    ordered = sorted(
        (s for s in statements if isinstance(s, dict) and s.get("rank") != "deprecated"),
        key=lambda s: 0 if s.get("rank") == "preferred" else 1,
    )
    for statement in ordered:
        datavalue = (statement.get("mainsnak") or {}).get("datavalue") or {}
        value = datavalue.get("value")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_entity(qid: str, entity: dict[str, Any]) -> PrimaryEntity:
    claims = entity.get("claims")
    identifiers: dict[str, Identifier] = {}
    for prop, (source_type, label) in IDENTIFIER_PROPERTIES.items():
        value = _claim_value(claims, prop)
        if value is not None:
            identifiers[source_type] = Identifier(type=source_type, value=value, label=label)

    return PrimaryEntity(
        id=str(entity.get("id") or qid),
        label=_language_value(entity.get("labels")) or qid,
        description=_language_value(entity.get("descriptions")),
        identifiers=identifiers,
    )


async def fetch_entity(qid: str) -> PrimaryEntity:
    """Fetch a Wikidata item and extract the identifiers the registry knows about."""
    if not is_valid_qid(qid):
        raise EntityFetchError(f"Invalid Wikidata ID: {qid!r}")

    url = f"{settings.wikidata_base_url}/wiki/Special:EntityData/{qid}.json"
    try:
        payload = await get_json(url, source=SOURCE)
    except SourceFetchError as e:
        raise EntityFetchError(str(e)) from e

    if payload is None:
        raise EntityFetchError(f"Wikidata entity {qid} not found")

    entities = payload.get("entities") if isinstance(payload, dict) else None
    if not isinstance(entities, dict) or not entities:
        raise EntityFetchError(f"Malformed Wikidata response for {qid}")

    # Redirected items are keyed by their target id.
    entity = entities.get(qid) or next(iter(entities.values()))
    if not isinstance(entity, dict):
        raise EntityFetchError(f"Malformed Wikidata response for {qid}")

    return parse_entity(qid, entity)
