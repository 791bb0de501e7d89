from __future__ import annotations

from jenifesto.models.entities import SourceResult
from jenifesto.services.errors import SourceFetchError
from jenifesto.sources.http import first_text, get_json, truncate

SOURCE = "openlibrary"
BASE_URL = "https://openlibrary.org"
COVERS_URL = "https://covers.openlibrary.org"

# OLIDs end with a letter naming the record kind.
OLID_PATHS = {
    "A": "authors",
    "W": "works",
    "M": "books",
}


def _olid_path(olid: str) -> str | None:
    cleaned = olid.strip().upper()
    if not cleaned.startswith("OL") or len(cleaned) < 4:
        return None
    return OLID_PATHS.get(cleaned[-1])


def identifier_url(olid: str) -> str | None:
    path = _olid_path(olid)
    if path is None:
        return None
    return f"{BASE_URL}/{path}/{olid.strip().upper()}"


def _cover_url(kind: str, cover_id: object) -> str | None:
    if not isinstance(cover_id, int) or cover_id <= 0:
        return None
    return f"{COVERS_URL}/{kind}/id/{cover_id}-M.jpg"


async def fetch_by_olid(olid: str) -> SourceResult | None:
    """Fetch an author, work or edition record by its Open Library ID."""
    path = _olid_path(olid)
    if path is None:
        raise SourceFetchError(SOURCE, f"Unrecognized Open Library ID: {olid}")
    key = olid.strip().upper()

    payload = await get_json(f"{BASE_URL}/{path}/{key}.json", source=SOURCE)
    if not isinstance(payload, dict):
        return None

    title = first_text(payload.get("title")) or first_text(payload.get("name")) or key
    description = first_text(payload.get("description")) or first_text(payload.get("bio"))

    if path == "authors":
        photos = payload.get("photos") or []
        thumbnail = _cover_url("a", photos[0] if photos else None)
    else:
        covers = payload.get("covers") or []
        thumbnail = _cover_url("b", covers[0] if covers else None)

    return SourceResult(
        title=title,
        url=f"{BASE_URL}/{path}/{key}",
        description=truncate(description),
        thumbnail=thumbnail,
    )


async def search(query: str, limit: int) -> list[SourceResult]:
    payload = await get_json(
        f"{BASE_URL}/search.json",
        source=SOURCE,
        params={
            "q": query,
            "limit": limit,
            "fields": "key,title,author_name,first_publish_year,cover_i",
        },
    )
    docs = payload.get("docs", []) if isinstance(payload, dict) else []

    results: list[SourceResult] = []
    for doc in docs[:limit]:
        key = doc.get("key")
        if not isinstance(key, str) or not key:
            continue
        details: list[str] = []
        authors = doc.get("author_name") or []
        if authors:
            details.append(", ".join(authors[:3]))
        if doc.get("first_publish_year"):
            details.append(str(doc["first_publish_year"]))
        results.append(
            SourceResult(
                title=first_text(doc.get("title")) or key,
                url=f"{BASE_URL}{key}",
                description=" · ".join(details) or None,
                thumbnail=_cover_url("b", doc.get("cover_i")),
            )
        )
    return results
